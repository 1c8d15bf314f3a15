from aws_cdk import (
    Stack,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_ecs_patterns as ecs_patterns,
    aws_dynamodb as dynamodb,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_secretsmanager as secretsmanager,
    aws_cognito as cognito,
    BundlingOptions,
    CfnOutput,
    RemovalPolicy,
    Duration,
)
from constructs import Construct
import os

BACKEND_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "..", "backend")

# The trigger only needs the domain gate; boto3 ships with the Lambda runtime
LAMBDA_REQUIREMENTS = "requirements-lambda.txt"
LAMBDA_ASSET_EXCLUDE = [
    "main.py",
    "recaptcha.py",
    "schemas.py",
    "Dockerfile",
    "requirements.txt",
    "__pycache__",
]
LAMBDA_BUNDLE_COMMAND = f"pip install -r {LAMBDA_REQUIREMENTS} -t /asset-output && cp -au . /asset-output"


class SignupGatesStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Read project-specific values from environment variables or use defaults
        table_name = os.environ.get("DYNAMODB_TABLE_NAME", "signup_gates")
        # Upper bound on concurrently running instances of either gate
        max_instances = int(os.environ.get("MAX_INSTANCES", "10"))
        # The reCAPTCHA secret itself stays in Secrets Manager, only its name is configured here
        recaptcha_secret_name = os.environ.get("RECAPTCHA_SECRET_NAME", "signup-gates/recaptcha-secret")
        recaptcha_disabled = os.environ.get("RECAPTCHA_DISABLED", "false")

        # DynamoDB single table (PK/SK); holds the config/emailDomains document
        table = dynamodb.Table(
            self, "SignupGatesTable",
            table_name=table_name,
            partition_key=dynamodb.Attribute(name="PK", type=dynamodb.AttributeType.STRING),
            sort_key=dynamodb.Attribute(name="SK", type=dynamodb.AttributeType.STRING),
            billing_mode=dynamodb.BillingMode.PAY_PER_REQUEST,
            removal_policy=RemovalPolicy.RETAIN,
        )

        # ==========================
        # Verification endpoint (FastAPI on Fargate)
        # ==========================
        vpc = ec2.Vpc(self, "AppVpc", max_azs=2)
        cluster = ecs.Cluster(self, "AppCluster", vpc=vpc)

        task_role = iam.Role(
            self, "TaskExecutionRole",
            assumed_by=iam.ServicePrincipal("ecs-tasks.amazonaws.com")
        )

        task_definition = ecs.FargateTaskDefinition(
            self, "AppTaskDef",
            cpu=256,
            memory_limit_mib=512,
            task_role=task_role
        )

        recaptcha_secret = secretsmanager.Secret.from_secret_name_v2(
            self, "RecaptchaSecret", recaptcha_secret_name
        )

        container = task_definition.add_container(
            "AppContainer",
            # Build Docker image from the backend directory (two levels up from cdk/)
            image=ecs.ContainerImage.from_asset(BACKEND_DIR),
            logging=ecs.LogDriver.aws_logs(
                stream_prefix="AppLogs",
                log_retention=logs.RetentionDays.ONE_WEEK
            ),
            environment={
                "DYNAMODB_TABLE_NAME": table_name,
                "RECAPTCHA_DISABLED": recaptcha_disabled,
            },
            secrets={
                "RECAPTCHA_SECRET_KEY": ecs.Secret.from_secrets_manager(recaptcha_secret),
            },
        )
        # Align container port with uvicorn port inside Dockerfile (8001)
        container.add_port_mappings(ecs.PortMapping(container_port=8001))

        service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self, "AppFargateService",
            cluster=cluster,
            task_definition=task_definition,
            public_load_balancer=True,
            health_check_grace_period=Duration.seconds(120),
        )
        service.target_group.configure_health_check(
            path="/health",
            healthy_http_codes="200",
            interval=Duration.seconds(30),
            timeout=Duration.seconds(5),
            healthy_threshold_count=2,
            unhealthy_threshold_count=3,
        )
        scaling = service.service.auto_scale_task_count(min_capacity=1, max_capacity=max_instances)
        scaling.scale_on_cpu_utilization("CpuScaling", target_utilization_percent=70)

        # ==========================
        # Domain gate (Cognito Pre sign-up trigger)
        # ==========================
        pre_signup_fn = lambda_.Function(
            self, "PreSignUpFunction",
            runtime=lambda_.Runtime.PYTHON_3_12,
            handler="pre_signup.handler",
            # Bundle the domain gate modules with their runtime requirements
            code=lambda_.Code.from_asset(
                BACKEND_DIR,
                exclude=LAMBDA_ASSET_EXCLUDE,
                bundling=BundlingOptions(
                    image=lambda_.Runtime.PYTHON_3_12.bundling_image,
                    command=["bash", "-c", LAMBDA_BUNDLE_COMMAND],
                ),
            ),
            timeout=Duration.seconds(5),
            reserved_concurrent_executions=max_instances,
            environment={
                "DYNAMODB_TABLE_NAME": table_name,
            },
            log_retention=logs.RetentionDays.ONE_WEEK,
        )
        # The allow-list is read-only from here
        table.grant_read_data(pre_signup_fn)

        user_pool = cognito.UserPool(
            self,
            "UserPool",
            self_sign_up_enabled=True,
            sign_in_aliases=cognito.SignInAliases(email=True),
            standard_attributes=cognito.StandardAttributes(
                email=cognito.StandardAttribute(required=True, mutable=False)
            ),
            password_policy=cognito.PasswordPolicy(min_length=8),
            account_recovery=cognito.AccountRecovery.EMAIL_ONLY,
            lambda_triggers=cognito.UserPoolTriggers(pre_sign_up=pre_signup_fn),
            removal_policy=RemovalPolicy.RETAIN,
        )

        user_pool_client = cognito.UserPoolClient(
            self,
            "UserPoolClient",
            user_pool=user_pool,
            generate_secret=False,
            prevent_user_existence_errors=True,
        )

        CfnOutput(self, "LoadBalancerURL",
                  value=service.load_balancer.load_balancer_dns_name,
                  description="Public URL for the verification endpoint",
                  export_name="SignupGatesApiUrl")
        CfnOutput(self, "DynamoTableName", value=table.table_name)
        CfnOutput(self, "CognitoUserPoolId", value=user_pool.user_pool_id)
        CfnOutput(self, "CognitoUserPoolClientId", value=user_pool_client.user_pool_client_id)
        CfnOutput(self, "PreSignUpFunctionName", value=pre_signup_fn.function_name)
