"""
Chart Stream Wire Protocol

Envelope encoding for outbound DrawCommands and decoding of inbound control
messages.

Outbound:
    {"type": "drawCommands", "commands": [ {type, label?, pane, seriesId, vertices, style}, ... ]}
    {"type": "error", "message": "<reason>"}

Inbound:
    {"type": "subscribe", "seriesType": "line"}
    {"type": "subscribe", "seriesTypes": ["line", "candlestick"]}
    {"type": "unsubscribe"}
    {"type": "appendData", "seriesType": "line", "fromIndex": 120}
"""

from typing import Dict, Iterable, List, Literal, Optional, Type, Union
import json
import logging

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError

from chartstream.errors import ProtocolError
from chartstream.render_engine.schemas import DrawCommand

LOG = logging.getLogger(__name__)

DRAW_COMMANDS = "drawCommands"
ERROR = "error"


# ============================================================================
# INBOUND CONTROL MESSAGES
# ============================================================================

class ControlMessage(BaseModel):
    """Base for inbound control messages"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SubscribeMessage(ControlMessage):
    """Start streaming one or more series types"""
    type: Literal["subscribe"] = "subscribe"
    series_type: Optional[StrictStr] = Field(None, alias="seriesType")
    series_types: Optional[List[StrictStr]] = Field(None, alias="seriesTypes")

    @property
    def requested_series_types(self) -> List[str]:
        """Requested series types in order, duplicates dropped"""
        requested: List[str] = []
        if self.series_type is not None:
            requested.append(self.series_type)
        requested.extend(self.series_types or [])
        return list(dict.fromkeys(requested))


class UnsubscribeMessage(ControlMessage):
    """Stop streaming"""
    type: Literal["unsubscribe"] = "unsubscribe"


class AppendDataMessage(ControlMessage):
    """One-shot request for records past an index"""
    type: Literal["appendData"] = "appendData"
    series_type: StrictStr = Field(..., alias="seriesType")
    from_index: int = Field(..., alias="fromIndex", ge=0, strict=True)


AnyControlMessage = Union[SubscribeMessage, UnsubscribeMessage, AppendDataMessage]

MESSAGE_MODELS: Dict[str, Type[ControlMessage]] = {
    "subscribe": SubscribeMessage,
    "unsubscribe": UnsubscribeMessage,
    "appendData": AppendDataMessage,
}


def _describe_validation_error(message_type: str, exc: ValidationError) -> str:
    first = exc.errors()[0]
    field_name = ".".join(str(part) for part in first.get("loc", ())) or "message"
    if first.get("type") == "missing":
        return f"Invalid {message_type} message: missing required field '{field_name}'"
    return f"Invalid {message_type} message: field '{field_name}': {first.get('msg')}"


def parse_control_message(text: Union[str, bytes]) -> AnyControlMessage:
    """
    Decode one inbound control message.

    Raises:
        ProtocolError: malformed JSON, unknown type, or missing/invalid fields
    """
    try:
        obj = json.loads(text)
    except (TypeError, ValueError):
        raise ProtocolError("Malformed message: not valid JSON")

    if not isinstance(obj, dict):
        raise ProtocolError("Malformed message: expected a JSON object")

    message_type = obj.get("type")
    if not isinstance(message_type, str):
        raise ProtocolError("Malformed message: missing 'type'")

    model = MESSAGE_MODELS.get(message_type)
    if model is None:
        raise ProtocolError(f"Unknown message type: {message_type}")

    try:
        message = model.model_validate(obj)
    except ValidationError as e:
        raise ProtocolError(_describe_validation_error(message_type, e))

    if isinstance(message, SubscribeMessage) and not message.requested_series_types:
        raise ProtocolError("Invalid subscribe message: seriesType or seriesTypes is required")

    return message


# ============================================================================
# OUTBOUND ENVELOPES
# ============================================================================

def draw_commands_envelope(commands: Iterable[DrawCommand]) -> dict:
    return {
        "type": DRAW_COMMANDS,
        "commands": [command.to_dict() for command in commands],
    }


def error_envelope(message: str) -> dict:
    return {"type": ERROR, "message": message}


def encode_draw_commands(commands: Iterable[DrawCommand]) -> str:
    """Wrap DrawCommands into one batch envelope"""
    return json.dumps(draw_commands_envelope(commands), allow_nan=False)


def encode_error(message: str) -> str:
    return json.dumps(error_envelope(message))
