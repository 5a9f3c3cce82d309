"""
Model gateway.

Turns a logical model id and a prompt into an upstream call, normalizes the
reply and attaches a server-side cost.

Validation Order:
1. Model and prompt present
2. Model listed in the catalog
3. Provider has a dispatch client
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .catalog import ModelCatalog, Provider
from .pricing import UsageRecord

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
UPSTREAM_FAILURE_MESSAGE = "Upstream model request failed"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant specialized in designing AI agents for human flourishing."
)
MAX_TEMPERATURE = 2.0


class GatewayError(Exception):
    """Base error carrying the HTTP status it maps to."""
    status_code = 500

    def to_dict(self) -> Dict[str, str]:
        return error_envelope(str(self))


class CallerError(GatewayError):
    """Raised for invalid requests; never retried."""
    status_code = 400


def error_envelope(message: str) -> Dict[str, str]:
    """Error payload with sentinel model/provider fields."""
    return {"error": message, "model": UNKNOWN, "provider": UNKNOWN}


@dataclass(frozen=True)
class GatewayDefaults:
    """Values applied when a request omits them."""
    system: str = DEFAULT_SYSTEM_PROMPT
    max_tokens: int = 1000
    temperature: float = 0.7
    timeout: Optional[float] = None

    def __post_init__(self):
        """Validate default values."""
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if not 0 <= self.temperature <= MAX_TEMPERATURE:
            raise ValueError(f"temperature must be between 0 and {MAX_TEMPERATURE}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")


@dataclass(frozen=True)
class GatewayRequest:
    """One gateway invocation as received from a caller."""
    model: Optional[str]
    prompt: Optional[str]
    system: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Optional[Mapping[str, Any]]) -> "GatewayRequest":
        """Build a request from the JSON body.

        Raises:
            CallerError: If the body is not an object or a numeric field is malformed
        """
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise CallerError("Request body must be a JSON object")

        max_tokens = payload.get("maxTokens")
        if max_tokens is not None:
            if isinstance(max_tokens, bool) or not isinstance(max_tokens, (int, float)) \
                    or not math.isfinite(max_tokens) or int(max_tokens) != max_tokens:
                raise CallerError("maxTokens must be an integer")
            max_tokens = int(max_tokens)

        temperature = payload.get("temperature")
        if temperature is not None:
            if isinstance(temperature, bool) or not isinstance(temperature, (int, float)):
                raise CallerError("temperature must be a number")
            temperature = float(temperature)

        system = payload.get("system")
        if system is not None and not isinstance(system, str):
            raise CallerError("system must be a string")

        return cls(
            model=payload.get("model"),
            prompt=payload.get("prompt"),
            system=system,
            max_tokens=max_tokens,
            temperature=temperature,
        )


@dataclass(frozen=True)
class GatewayResponse:
    """Normalized successful reply."""
    content: str
    usage: UsageRecord
    model: str
    provider: Provider

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "usage": self.usage.to_dict(),
            "model": self.model,
            "provider": self.provider.value,
        }


class ModelGateway:
    """Dispatches validated requests to the provider client of the model.

    The catalog and the provider clients are injected, so tests can swap in
    a fake catalog or mock clients.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        clients: Mapping[Provider, Any],
        defaults: Optional[GatewayDefaults] = None
    ):
        """Initialize the gateway.

        Args:
            catalog: Models callers may request
            clients: Provider to client mapping; each client needs a complete() method
            defaults: Defaults for omitted request fields
        """
        self.catalog = catalog
        self.clients = dict(clients)
        self.defaults = defaults or GatewayDefaults()

    def invoke(self, request: GatewayRequest) -> GatewayResponse:
        """Validate, dispatch and normalize one request.

        Args:
            request: Gateway request

        Returns:
            GatewayResponse with cost computed from the reported usage

        Raises:
            CallerError: If the request is invalid
            Provider errors: Propagated without modification
        """
        if not request.model or not request.prompt:
            raise CallerError("Model and prompt are required")
        if not isinstance(request.model, str) or not isinstance(request.prompt, str):
            raise CallerError("Model and prompt must be strings")

        descriptor = self.catalog.get(request.model)
        if descriptor is None:
            raise CallerError(f"Model {request.model} not supported")

        client = self.clients.get(descriptor.provider)
        if client is None:
            raise CallerError(f"Provider {descriptor.provider.value} not implemented")

        max_tokens = self.defaults.max_tokens if request.max_tokens is None else request.max_tokens
        if max_tokens <= 0 or max_tokens > descriptor.max_tokens:
            raise CallerError(
                f"maxTokens must be between 1 and {descriptor.max_tokens} for {descriptor.id}"
            )

        temperature = self.defaults.temperature if request.temperature is None else request.temperature
        if not 0 <= temperature <= MAX_TEMPERATURE:
            raise CallerError(f"temperature must be between 0 and {MAX_TEMPERATURE}")

        logger.info("Dispatching %s to %s", descriptor.id, descriptor.provider.value)
        completion = client.complete(
            model=descriptor.id,
            prompt=request.prompt,
            system=request.system or self.defaults.system,
            max_tokens=max_tokens,
            temperature=temperature
        )

        usage = UsageRecord.from_usage(completion.usage, descriptor)
        logger.info(
            "%s used %d input / %d output tokens, cost %s",
            descriptor.id, usage.input_tokens, usage.output_tokens, usage.total_cost
        )
        return GatewayResponse(
            content=completion.content,
            usage=usage,
            model=descriptor.id,
            provider=descriptor.provider
        )

    def handle(self, payload: Optional[Mapping[str, Any]]):
        """Run a raw JSON payload through the gateway.

        Never raises: caller errors and upstream failures both become the
        error envelope.

        Returns:
            Tuple of (response body dict, HTTP status code)
        """
        try:
            request = GatewayRequest.from_payload(payload)
            return self.invoke(request).to_dict(), 200
        except CallerError as e:
            logger.warning("Rejected gateway request: %s", e)
            return e.to_dict(), e.status_code
        except Exception:
            logger.exception("Multi-model request failed")
            return error_envelope(UPSTREAM_FAILURE_MESSAGE), GatewayError.status_code
