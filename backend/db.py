import logging

import boto3

from config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()

_dynamodb = boto3.resource(
    "dynamodb",
    region_name=_settings.aws_region,
    endpoint_url=_settings.dynamodb_endpoint_url,
)
_table = _dynamodb.Table(_settings.table_name)

# Schema:
# Document: PK=DOC#<collection>, SK=<docId>, plus the document's own fields
#   e.g. PK=DOC#config, SK=emailDomains, domains=["university.edu", ...]


def document_key(path: str) -> dict:
    '''Map a "collection/docId" path onto the single-table key.'''
    parts = path.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Invalid document path: {path!r}")
    collection, doc_id = parts
    return {"PK": f"DOC#{collection}", "SK": doc_id}


def get_document(path: str) -> dict | None:
    key = document_key(path)
    try:
        r = _table.get_item(Key=key)
    except Exception:
        logger.exception("DynamoDB get_item failed for %s", path)
        raise
    return r.get("Item")
