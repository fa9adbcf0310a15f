"""KeePassHTTP wire names and result models."""
from enum import Enum

from pydantic import BaseModel, Field

# request / response field names, verbatim as the store uses them
REQUEST_TYPE = "RequestType"
TRIGGER_UNLOCK = "TriggerUnlock"
NONCE = "Nonce"
VERIFIER = "Verifier"
ID = "Id"
KEY = "Key"
URL = "Url"
SUBMIT_URL = "SubmitUrl"
SORT_SELECTION = "SortSelection"
SUCCESS = "Success"
COUNT = "Count"
ENTRIES = "Entries"


class RequestType(str, Enum):
    TEST_ASSOCIATE = "test-associate"
    ASSOCIATE = "associate"
    GET_LOGINS = "get-logins"
    GET_LOGINS_COUNT = "get-logins-count"


class Credential(BaseModel):
    """A decrypted login entry returned by ``get-logins``."""

    name: str
    login: str
    password: str = Field(repr=False)
    uuid: str

    model_config = {"frozen": True}


def is_success(response: dict) -> bool:
    return response.get(SUCCESS) is True
