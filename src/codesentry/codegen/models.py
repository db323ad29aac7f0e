"""Code generation data models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from codesentry.scan.models import ScanStatus


@dataclass(frozen=True)
class CodeGenerationRequest:
    """Prompt sent to the generator."""

    prompt: str
    language: str
    model_type: str | None = None

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"prompt": self.prompt, "language": self.language}
        if self.model_type:
            payload["modelType"] = self.model_type
        return payload


@dataclass(frozen=True)
class CodeGenerationResponse:
    code_id: str
    content: str
    language: str
    model_used: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CodeGenerationResponse:
        return cls(
            code_id=data["codeId"],
            content=data.get("content", ""),
            language=data.get("language", ""),
            model_used=data.get("modelUsed", ""),
        )


@dataclass
class GeneratedCodeDocument:
    """A stored generation result, including its display-side scan status."""

    id: str
    content: str
    language: str
    prompt: str = ""
    ai_model: str = ""
    user_id: int | None = None
    created_at: str = ""
    scan_status: ScanStatus = ScanStatus.PENDING
    is_visible: bool = True

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GeneratedCodeDocument:
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            language=data.get("language", ""),
            prompt=data.get("prompt", ""),
            ai_model=data.get("aiModel", ""),
            user_id=data.get("userId"),
            created_at=str(data.get("createdAt", "")),
            scan_status=ScanStatus.parse(data.get("scanStatus")),
            is_visible=bool(data.get("isVisible", True)),
        )
