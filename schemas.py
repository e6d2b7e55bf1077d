from typing import Annotated, List, Literal, Optional

from pydantic import (AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field,
                      StringConstraints, ValidationError, field_validator, model_validator)
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

Option = Literal["A", "B", "C", "D"]

# upper bound of a 32-bit INTEGER column
MAX_INT = 2**31 - 1

# passwords are hashed exactly as typed
Password = Annotated[str, StringConstraints(strip_whitespace=False)]


def _upper(value):
    return value.upper() if isinstance(value, str) else value


AnswerOption = Annotated[Option, BeforeValidator(_upper)]


class RequestModel(BaseModel):
    """Request bodies arrive camelCased; fields are accessed snake_cased."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


# ----------------- auth -----------------
class AdminLogin(RequestModel):
    admin_id: str = Field(..., min_length=1)
    password: Password = Field(..., min_length=1)


class StudentLogin(RequestModel):
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: Password = Field(..., min_length=1)


class StudentCreate(RequestModel):
    student_id: str = Field(..., min_length=1, max_length=50)
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=200)
    password: Password = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value):
        return value.lower()


# ----------------- courses & questions -----------------
class CourseCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class QuestionCreate(RequestModel):
    course_id: str = Field(..., min_length=1)
    question_text: str = Field(..., min_length=1)
    option_a: str = Field(..., min_length=1, max_length=500)
    option_b: str = Field(..., min_length=1, max_length=500)
    option_c: str = Field(..., min_length=1, max_length=500)
    option_d: str = Field(..., min_length=1, max_length=500)
    correct_answer: AnswerOption


class QuestionUpdate(RequestModel):
    course_id: Optional[str] = Field(default=None, min_length=1)
    question_text: Optional[str] = Field(default=None, min_length=1)
    option_a: Optional[str] = Field(default=None, min_length=1, max_length=500)
    option_b: Optional[str] = Field(default=None, min_length=1, max_length=500)
    option_c: Optional[str] = Field(default=None, min_length=1, max_length=500)
    option_d: Optional[str] = Field(default=None, min_length=1, max_length=500)
    correct_answer: Optional[AnswerOption] = None


# ----------------- test workflow -----------------
class AttemptStart(RequestModel):
    course_id: str = Field(..., min_length=1)
    total_questions: Optional[int] = Field(default=None, ge=0, le=MAX_INT)


class AttemptAnswer(RequestModel):
    test_attempt_id: str = Field(..., min_length=1)
    question_id: str = Field(..., min_length=1)
    selected_answer: Optional[Option] = Field(
        default=None,
        validation_alias=AliasChoices("selectedAnswer", "selected", "selected_answer"),
    )

    @field_validator("selected_answer", mode="before")
    @classmethod
    def blank_is_skipped(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return _upper(value)


class AttemptComplete(RequestModel):
    test_attempt_id: str = Field(..., min_length=1)
    score: int = Field(..., ge=0, le=MAX_INT)
    correct_answers: int = Field(..., ge=0, le=MAX_INT)
    total_questions: int = Field(..., ge=0, le=MAX_INT)
    time_spent: int = Field(..., ge=0, le=MAX_INT)

    @model_validator(mode="after")
    def correct_within_total(self):
        if self.correct_answers > self.total_questions:
            raise ValueError("correctAnswers cannot exceed totalQuestions")
        return self


# ----------------- error shaping -----------------
def error_details(exc: ValidationError) -> List[dict]:
    """Flattens pydantic errors into {field, code, message} entries."""
    details = []
    for err in exc.errors():
        details.append({
            "field": ".".join(str(part) for part in err["loc"]) or None,
            "code": err["type"],
            "message": err["msg"],
        })
    return details


def reference_error(field: str, message: str) -> List[dict]:
    """Same shape as error_details, for ids that point at nothing."""
    return [{"field": field, "code": "not_found", "message": message}]
