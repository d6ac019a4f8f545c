"""
Action executor.

Turns a declarative Action + Integration definition plus caller inputs into
a validated, templated HTTP call and reports the outcome as an
ExecutionResult. execute() never raises: validation errors, missing
secrets, upstream failures and timeouts all come back as
``ExecutionResult(success=False, error=...)``.

Retry policy:
    - 5xx responses are retried up to ``max_retries`` times, waiting
      2**attempt seconds before each retry
    - 4xx responses, connection failures and timeouts fail immediately
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from ..domain.entities import (
    Action,
    ActionVariable,
    AuthLocation,
    ExecutionResult,
    RequestEcho,
    VariableType,
)
from ..domain.ports import IActionRepository, IEncryptionService, IHttpTransport
from ..exceptions import AgentBuilderError, APIError, InputValidationError, ServerError
from ..security.encryption import mask_secret
from .templates import TemplateResolver
from .transport import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
SENSITIVE_HEADER_MARKERS = ("authorization", "api-key", "token")


def _matches_type(value: Any, expected: VariableType) -> bool:
    if expected == VariableType.NUMBER:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if expected == VariableType.BOOLEAN:
        return isinstance(value, bool)
    if expected == VariableType.STRING:
        return isinstance(value, str)
    if expected == VariableType.OBJECT:
        return isinstance(value, dict)
    if expected == VariableType.ARRAY:
        return isinstance(value, list)
    return True


class ActionExecutor:
    """Executes actions against their integrations.

    Args:
        action_repository: Lookup of Action joined to its Integration
        template_resolver: Renders templates and resolves secret references
        transport: Sends HTTP requests
        encryption: Used to mask sensitive headers in the request echo
        timeout: Per-request timeout in seconds
        max_retries: Extra attempts granted to 5xx responses
    """

    def __init__(
        self,
        action_repository: IActionRepository,
        template_resolver: TemplateResolver,
        transport: IHttpTransport,
        encryption: Optional[IEncryptionService] = None,
        timeout: float = 30.0,
        max_retries: int = 1,
    ):
        self.action_repository = action_repository
        self.template_resolver = template_resolver
        self.transport = transport
        self.encryption = encryption
        self.timeout = timeout
        self.max_retries = max_retries

    async def execute(self, action_id: str, inputs: dict[str, Any]) -> ExecutionResult:
        """Execute an action with the given inputs."""
        try:
            action = await self.action_repository.get_with_integration(action_id)
        except Exception as e:
            logger.error(f"Failed to load action {action_id}: {e}")
            message = e.message if isinstance(e, AgentBuilderError) else str(e)
            return ExecutionResult(success=False, error=message)

        if action is None or action.integration is None:
            logger.warning(f"Action {action_id} not found")
            return ExecutionResult(success=False, error="Action not found")

        try:
            self.validate_inputs(action.variables, inputs)
            request = await self.build_request(action, inputs)

            logger.info(f"Executing action {action.name}: {request.method} {request.url}")
            response = await self.execute_with_retry(request)

            return ExecutionResult(
                success=True,
                status=response.status,
                data=response.data,
                request=RequestEcho(
                    url=request.url,
                    method=request.method,
                    headers=self.mask_headers(request.headers),
                    body=request.body,
                ),
            )

        except AgentBuilderError as e:
            logger.error(f"Action execution error ({action.name}): {e.message}")
            return ExecutionResult(
                success=False,
                error=e.message,
                status=e.status_code if isinstance(e, APIError) else None,
            )

        except Exception as e:
            logger.exception(f"Unexpected error executing action {action.name}: {e}")
            return ExecutionResult(success=False, error=str(e))

    def validate_inputs(self, variables: list[ActionVariable], inputs: dict[str, Any]) -> None:
        """Check every declared variable is present, non-null and of its declared kind.

        Raises:
            InputValidationError: On the first offending variable
        """
        for variable in variables:
            value = inputs.get(variable.name)

            if value is None:
                raise InputValidationError(
                    f"Missing required variable: {variable.name}",
                    variable=variable.name,
                )

            if not _matches_type(value, variable.type):
                article = "an" if variable.type.value[0] in "aeiou" else "a"
                raise InputValidationError(
                    f"Variable {variable.name} must be {article} {variable.type.value}",
                    variable=variable.name,
                )

    async def build_request(self, action: Action, inputs: dict[str, Any]) -> HttpRequest:
        """Build the HTTP request for an action.

        URL: action.url_template if set, else integration.url (both rendered).
        Headers: integration defaults, then header-type auth entries.
        Params: integration defaults, then rendered query_template entries,
        then query-type auth entries.
        Body: rendered body_template for POST/PUT/PATCH only, parsed as JSON
        when possible, else sent as raw text.
        """
        integration = action.integration
        render = self.template_resolver.render

        url = render(action.url_template or integration.url, inputs)

        headers: dict[str, str] = dict(integration.default_headers)
        params: dict[str, Any] = dict(integration.default_params)

        auth_entries = integration.auth_config if integration.auth_enabled else []

        for entry in auth_entries:
            if entry.type == AuthLocation.HEADER:
                headers[entry.key] = await self.template_resolver.resolve_value(entry.value, inputs)

        if action.query_template:
            for key, template in action.query_template.items():
                params[key] = render(template, inputs)

        for entry in auth_entries:
            if entry.type == AuthLocation.QUERY:
                params[entry.key] = await self.template_resolver.resolve_value(entry.value, inputs)

        json_body: Any = None
        raw_body: Optional[str] = None
        if action.body_template and integration.method in BODY_METHODS:
            body_str = render(action.body_template, inputs)
            try:
                json_body = json.loads(body_str)
            except ValueError:
                raw_body = body_str

        return HttpRequest(
            method=integration.method,
            url=url,
            headers=headers,
            params=params,
            json=json_body,
            data=raw_body,
            timeout=self.timeout,
        )

    async def execute_with_retry(self, request: HttpRequest) -> HttpResponse:
        """Send the request, retrying only 5xx responses."""
        attempt = 0
        while True:
            try:
                return await self.transport.send(request)
            except ServerError as e:
                if attempt >= self.max_retries:
                    raise
                delay = 2 ** attempt
                logger.warning(
                    f"Server error {e.status_code} from {request.url}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{self.max_retries + 1})"
                )
                await asyncio.sleep(delay)
                attempt += 1

    def mask_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Mask headers whose name contains authorization, api-key or token."""
        mask = self.encryption.mask if self.encryption else mask_secret
        masked = dict(headers)
        for key, value in masked.items():
            lowered = key.lower()
            if any(marker in lowered for marker in SENSITIVE_HEADER_MARKERS):
                masked[key] = mask(str(value))
        return masked
