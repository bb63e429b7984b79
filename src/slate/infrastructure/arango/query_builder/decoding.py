"""Decoding of result documents with pydantic."""

from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from slate.core.base import ValidationErrorDetails
from slate.core.errors import DecodingError

T = TypeVar("T")


class PydanticDecoder:
    """DocumentDecoder backed by pydantic ``TypeAdapter``.

    Targets can be anything pydantic validates: models, dataclasses,
    TypedDicts, or plain types such as ``dict`` and ``int``.
    """

    def __init__(self, strict: bool | None = None) -> None:
        self.strict = strict
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def _adapter(self, target: Any) -> TypeAdapter[Any]:
        adapter = self._adapters.get(target)
        if adapter is None:
            adapter = TypeAdapter(target)
            self._adapters[target] = adapter
        return adapter

    def _validate(self, target: Any, data: Any, operation: str) -> Any:
        try:
            return self._adapter(target).validate_python(data, strict=self.strict)
        except ValidationError as e:
            raise DecodingError(
                f"Could not decode result into {target!r}: {e.error_count()} error(s)",
                details=ValidationErrorDetails(
                    source=__name__,
                    operation=operation,
                    expected_type=repr(target),
                    constraint=str(e),
                ),
            ) from e

    def decode_one(self, document: Any, result_type: type[T]) -> T:
        return self._validate(result_type, document, "decode_one")

    def decode_many(self, documents: Sequence[Any], result_type: type[T]) -> list[T]:
        # Validated as one list so a failure reports every bad row at once
        return self._validate(list[result_type], list(documents), "decode_many")  # type: ignore[valid-type]
