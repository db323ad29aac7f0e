"""Code generation and generated-code repository endpoints."""

from __future__ import annotations

from codesentry.api.client import ApiClient
from codesentry.codegen.models import (
    CodeGenerationRequest,
    CodeGenerationResponse,
    GeneratedCodeDocument,
)


class CodeGenApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def generate_code(
        self, prompt: str, language: str, model_type: str | None = None
    ) -> CodeGenerationResponse:
        request = CodeGenerationRequest(
            prompt=prompt, language=language, model_type=model_type
        )
        data = self._client.post("/code-gen/generate", json=request.to_api())
        return CodeGenerationResponse.from_api(data)

    def supported_models(self) -> list[str]:
        return list(self._client.get("/code-gen/models") or [])


class GeneratedCodeApi:
    """Stored code documents, including their ``scanStatus``."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list_codes(self) -> list[GeneratedCodeDocument]:
        data = self._client.get("/generated-code/list") or []
        return [GeneratedCodeDocument.from_api(d) for d in data]

    def get_code(self, code_id: str, timeout: float | None = None) -> GeneratedCodeDocument:
        data = self._client.get(f"/generated-code/{code_id}", timeout=timeout)
        return GeneratedCodeDocument.from_api(data)

    def delete_code(self, code_id: str) -> None:
        self._client.delete(f"/generated-code/{code_id}")
