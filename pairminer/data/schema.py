from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

OutputMode = Literal["full", "tokens"]


class FunctionRecord(BaseModel):
    """One function of the input corpus (CodeSearchNet-style JSON line)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    function_name: str = Field(alias="func_name")
    repo_id: str = Field(alias="repo")
    raw_source: str = Field(alias="original_string")
    code: str
    code_tokens: list[str]
    docstring: str
    doc_tokens: list[str] = Field(alias="docstring_tokens")

    @field_validator("function_name")
    @classmethod
    def _last_dotted_segment(cls, value: str) -> str:
        return value.split(".")[-1]


class TrainingPair(BaseModel):
    caller_code: str
    caller_code_tokens: list[str]
    caller_doc: str
    caller_doc_tokens: list[str]
    callee_code: str
    callee_code_tokens: list[str]
    callee_doc: str
    callee_doc_tokens: list[str]
    label: bool
    caller_name: str = Field(default="", exclude=True)
    callee_name: str = Field(default="", exclude=True)

    def to_row(self, mode: OutputMode = "full") -> dict[str, Any] | list[Any]:
        if mode == "tokens":
            return [
                self.caller_code_tokens,
                self.caller_doc_tokens,
                self.callee_code_tokens,
                self.callee_doc_tokens,
                self.label,
            ]
        return {
            "caller_code": self.caller_code,
            "caller_comm": self.caller_doc,
            "callee_code": self.callee_code,
            "callee_comm": self.callee_doc,
            "label": self.label,
            "caller_code_tokens": self.caller_code_tokens,
            "caller_comm_tokens": self.caller_doc_tokens,
            "callee_code_tokens": self.callee_code_tokens,
            "callee_comm_tokens": self.callee_doc_tokens,
        }


class PairRow(BaseModel):
    """A serialized ``full``-mode training pair."""

    model_config = ConfigDict(extra="forbid")

    caller_code: str
    caller_comm: str
    callee_code: str
    callee_comm: str
    label: bool
    caller_code_tokens: list[str]
    caller_comm_tokens: list[str]
    callee_code_tokens: list[str]
    callee_comm_tokens: list[str]


class TokenRow(BaseModel):
    """A serialized ``tokens``-mode training pair."""

    caller_code_tokens: list[str]
    caller_doc_tokens: list[str]
    callee_code_tokens: list[str]
    callee_doc_tokens: list[str]
    label: bool

    @classmethod
    def from_row(cls, row: list[Any]) -> "TokenRow":
        if not isinstance(row, list) or len(row) != 5:
            raise ValueError("tokens row must be a 5-element array")
        return cls(
            caller_code_tokens=row[0],
            caller_doc_tokens=row[1],
            callee_code_tokens=row[2],
            callee_doc_tokens=row[3],
            label=row[4],
        )


class FunctionDocPair(BaseModel):
    code: str
    comment: str

    def to_row(self) -> list[Any]:
        return [self.code, self.comment]


class CallBodyPair(BaseModel):
    caller_body: str
    callee_body: str

    def to_row(self) -> list[Any]:
        return [self.caller_body, self.callee_body]


class CallCommentPair(BaseModel):
    caller_code: str
    caller_comm: str
    callee_code: str
    callee_comm: str
    label: bool

    def to_row(self) -> list[Any]:
        return [self.caller_code, self.caller_comm, self.callee_code, self.callee_comm, self.label]
