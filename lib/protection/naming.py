import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from config.base_config import MAX_BUCKET_NAME_LENGTH, NamingConfig
from utils.naming import sanitize_bucket_name

from .errors import NamingError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamingContext:
    """Everything a naming strategy may read about a resource."""

    stack_name: str
    unique_id: str
    path: str
    account: Optional[str] = None
    region: Optional[str] = None


class StackScopedNameStrategy:
    """
    Derive a physical name that is stable per stack, construct and environment.

    The name is the head of the stack name, the tail of the construct unique id
    and a short sha256 of both plus region and account, lower-cased. Two
    resources with the same path deployed to different accounts or regions get
    different names.
    """

    def __init__(self, naming_config: NamingConfig = None):
        self._naming_config = naming_config or NamingConfig()

    def __call__(self, context: NamingContext) -> str:
        missing = [
            label
            for label, value in (("region", context.region), ("account", context.account))
            if not value
        ]
        if missing:
            raise NamingError(context.path, missing)

        stack_part = context.stack_name[: self._naming_config.stack_part_length]
        id_part = context.unique_id[-self._naming_config.id_part_length :]

        sha256 = hashlib.sha256()
        for part in (stack_part, id_part, context.region, context.account):
            sha256.update(part.encode("utf-8"))
        digest = sha256.hexdigest()[: self._naming_config.hash_length]

        max_length = min(
            self._naming_config.stack_part_length
            + self._naming_config.id_part_length
            + self._naming_config.hash_length,
            MAX_BUCKET_NAME_LENGTH,
        )
        name = sanitize_bucket_name(stack_part + id_part + digest, max_length=max_length)
        logger.debug(f"Generated physical name {name} for {context.path}")
        return name
