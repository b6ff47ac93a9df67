"""
Duplex channel event names and payload models.

Inbound payloads are validated with Pydantic; a failed validation becomes a
ValidationFailure that the dispatcher reports as an `error` event.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError, field_validator

from sparkpath_mentor.errors import ValidationFailure


# Inbound
START_ASSESSMENT = "start-assessment"
USER_MESSAGE = "user-message"
START_WELLNESS_CHECK = "start-wellness-check"
WELLNESS_RESPONSE = "wellness-response"

# Outbound
ASSISTANT_MESSAGE = "assistant-message"
ASSESSMENT_COMPLETE = "assessment-complete"
WELLNESS_COMPLETE = "wellness-complete"
ERROR = "error"


def _require_text(value: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError("must be a non-empty string")
    return value.strip()


class StartAssessment(BaseModel):
    userId: str

    @field_validator("userId")
    @classmethod
    def check_user(cls, value):
        return _require_text(value)


class StartWellnessCheck(BaseModel):
    userId: str
    courseId: str

    @field_validator("userId", "courseId")
    @classmethod
    def check_ids(cls, value):
        return _require_text(value)


class DialogueMessage(BaseModel):
    """Payload of both `user-message` and `wellness-response`."""
    message: str

    @field_validator("message")
    @classmethod
    def check_message(cls, value):
        return _require_text(value)


INBOUND_MODELS: Dict[str, Type[BaseModel]] = {
    START_ASSESSMENT: StartAssessment,
    USER_MESSAGE: DialogueMessage,
    START_WELLNESS_CHECK: StartWellnessCheck,
    WELLNESS_RESPONSE: DialogueMessage,
}


def parse_inbound(event: str, data: Optional[Dict[str, Any]]) -> BaseModel:
    """Validate an inbound payload for `event`."""
    model = INBOUND_MODELS.get(event)
    if model is None:
        raise ValidationFailure(f"Unknown event: {event}")
    if not isinstance(data, dict):
        raise ValidationFailure(f"{event} requires an object payload")
    try:
        return model(**data)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ValidationFailure(f"Missing or invalid fields for {event}: {fields}") from e


class OutboundEvent(BaseModel):
    event: str
    data: Dict[str, Any]

    def to_frame(self) -> Dict[str, Any]:
        return {"event": self.event, "data": self.data}


def assistant_message(message: str, question_number: Optional[int] = None) -> OutboundEvent:
    data: Dict[str, Any] = {"message": message}
    if question_number is not None:
        data["questionNumber"] = question_number
    return OutboundEvent(event=ASSISTANT_MESSAGE, data=data)


def assessment_complete(
    category: str, subcategories: List[str], reasoning: str, assessment_id: str
) -> OutboundEvent:
    return OutboundEvent(
        event=ASSESSMENT_COMPLETE,
        data={
            "category": category,
            "subcategories": subcategories,
            "reasoning": reasoning,
            "assessmentId": assessment_id,
        },
    )


def wellness_complete(outcome: str, reasoning: str, recommendation: str) -> OutboundEvent:
    return OutboundEvent(
        event=WELLNESS_COMPLETE,
        data={"outcome": outcome, "reasoning": reasoning, "recommendation": recommendation},
    )


def error(message: str) -> OutboundEvent:
    return OutboundEvent(event=ERROR, data={"message": message})


class TransitionResult(BaseModel):
    """Outcome of one state-machine step: events to emit, and whether the session ended."""
    events: List[OutboundEvent]
    finished: bool = False
