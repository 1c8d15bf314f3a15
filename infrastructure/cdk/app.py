#!/usr/bin/env python3
import os

import aws_cdk as cdk

from stack import SignupGatesStack

app = cdk.App()
SignupGatesStack(
    app, "SignupGatesStack",
    env=cdk.Environment(
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("AWS_REGION") or os.environ.get("CDK_DEFAULT_REGION"),
    ),
)
app.synth()
