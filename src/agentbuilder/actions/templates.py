"""
Template rendering with secret indirection.

Action URLs, query params, bodies and auth values are mustache templates
rendered against the caller's inputs. An auth value that is *exactly*
``{{UPPER_SNAKE_NAME}}`` is not rendered; it names a secret, resolved in
this order:

    1. the secret store (value decrypted on every call, never cached)
    2. an environment variable of the same name (non-empty only)
    3. otherwise SecretNotFoundError
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Mapping, Optional

import chevron

from ..domain.ports import IEncryptionService, ISecretStore
from ..exceptions import SecretNotFoundError

logger = logging.getLogger(__name__)

SECRET_REFERENCE = re.compile(r"^{{([A-Z_]+)}}$")


class TemplateResolver:
    """Renders mustache templates and resolves {{SECRET}} references."""

    def __init__(
        self,
        secret_store: ISecretStore,
        encryption: IEncryptionService,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.secret_store = secret_store
        self.encryption = encryption
        self.environ = environ if environ is not None else os.environ

    def render(self, template: str, inputs: dict[str, Any]) -> str:
        """Standard mustache substitution; missing keys render empty."""
        return chevron.render(template, inputs)

    async def resolve_value(self, template: str, inputs: dict[str, Any]) -> str:
        """Resolve an auth value template.

        Args:
            template: Either an exact secret reference or a mustache template
            inputs: Caller inputs used for rendering

        Returns:
            The decrypted secret, the env var value, or the rendered template

        Raises:
            SecretNotFoundError: Reference matches neither a secret nor an env var
        """
        match = SECRET_REFERENCE.match(template)
        if not match:
            return self.render(template, inputs)

        secret_name = match.group(1)
        secret = await self.secret_store.get_by_name(secret_name)
        if secret is not None:
            logger.debug(f"Resolved {secret_name} from secret store")
            return self.encryption.decrypt(secret.encrypted_value)

        env_value = self.environ.get(secret_name)
        if env_value:
            logger.debug(f"Resolved {secret_name} from environment")
            return env_value

        raise SecretNotFoundError(secret_name)
