# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Skugraph Contributors

"""Positional product classification codes.

Layout: ``FORMAT [BRAND] [VARIANT] [ORIGIN] [EXTRAS]``, space separated, e.g.
``100 DUK KBCH ORI 59``. Absent optional parts are omitted rather than padded.

Only the format and the extras can be read back. Brand, variant and origin are
truncated, stripped abbreviations and do not decode.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from skugraph.errors import ValidationFailedError


class ProductFormat(str, enum.Enum):
    ENVASADOS = "ENVASADOS"
    CONGELADOS = "CONGELADOS"
    FRESCOS = "FRESCOS"


class ProductExtra(str, enum.Enum):
    ARTESANAL = "ARTESANAL"
    INTEGRAL = "INTEGRAL"
    LIGHT = "LIGHT"
    ORGANICO = "ORGANICO"
    SIN_GLUTEN = "SIN_GLUTEN"
    KETO = "KETO"
    VEGANO = "VEGANO"
    SIN_AZUCAR = "SIN_AZUCAR"


FORMAT_CODES: dict[ProductFormat, str] = {
    ProductFormat.ENVASADOS: "100",
    ProductFormat.CONGELADOS: "200",
    ProductFormat.FRESCOS: "300",
}

EXTRA_CODES: dict[ProductExtra, str] = {
    ProductExtra.ARTESANAL: "2",
    ProductExtra.INTEGRAL: "3",
    ProductExtra.LIGHT: "4",
    ProductExtra.ORGANICO: "5",
    ProductExtra.SIN_GLUTEN: "6",
    ProductExtra.KETO: "7",
    ProductExtra.VEGANO: "8",
    ProductExtra.SIN_AZUCAR: "9",
}

FORMAT_NAMES: dict[ProductFormat, str] = {
    ProductFormat.ENVASADOS: "Envasados",
    ProductFormat.CONGELADOS: "Congelados",
    ProductFormat.FRESCOS: "Frescos",
}

EXTRA_NAMES: dict[ProductExtra, str] = {
    ProductExtra.ARTESANAL: "Artesanal",
    ProductExtra.INTEGRAL: "Integral",
    ProductExtra.LIGHT: "Light",
    ProductExtra.ORGANICO: "Orgánico",
    ProductExtra.SIN_GLUTEN: "Sin Gluten",
    ProductExtra.KETO: "Keto",
    ProductExtra.VEGANO: "Vegano",
    ProductExtra.SIN_AZUCAR: "Sin Azúcar",
}

_FORMAT_BY_CODE = {code: fmt for fmt, code in FORMAT_CODES.items()}
_EXTRA_BY_CODE = {code: extra for extra, code in EXTRA_CODES.items()}

_NON_ALNUM = re.compile(r"[^A-Z0-9]")
_EXTRAS_SEGMENT = re.compile(r"^[2-9]+$")

# (segment index, pattern, message) checked by validate().
_SEGMENT_RULES: tuple[tuple[int, re.Pattern[str], str], ...] = (
    (1, re.compile(r"^[A-Z0-9]{1,3}$"), "Brand code must be 1-3 alphanumeric characters"),
    (2, re.compile(r"^[A-Z0-9]{1,4}$"), "Variant/type code must be 1-4 alphanumeric characters"),
    (3, re.compile(r"^[A-Z0-9]{1,3}$"), "Origin code must be 1-3 alphanumeric characters"),
    (4, _EXTRAS_SEGMENT, "Extra codes must be digits 2-9 only"),
)
_FORMAT_SEGMENT = re.compile(r"^[1-3]00$")


@dataclass(frozen=True, slots=True)
class Classification:
    """What can be recovered from a code. Brand/variant/origin never are."""

    format: ProductFormat | None = None
    extras: frozenset[ProductExtra] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class CodecValidation:
    is_valid: bool
    errors: list[str]


def _abbreviate(value: str, width: int) -> str:
    cleaned = _NON_ALNUM.sub("", value.upper())
    return cleaned[:width].ljust(width, "X")


def _coerce_format(value: ProductFormat | str) -> ProductFormat:
    try:
        return ProductFormat(value)
    except ValueError:
        raise ValidationFailedError(f"Unknown product format '{value}'") from None


def _coerce_extra(value: ProductExtra | str) -> ProductExtra:
    try:
        return ProductExtra(value)
    except ValueError:
        raise ValidationFailedError(f"Unknown product extra '{value}'") from None


class ClassificationCodec:
    """Stateless encoder/decoder for the positional classification code."""

    def encode(
        self,
        format: ProductFormat | str,
        brand: str | None = None,
        variant: str | None = None,
        origin: str | None = None,
        extras: Iterable[ProductExtra | str] = (),
    ) -> str:
        parts = [FORMAT_CODES[_coerce_format(format)]]
        if brand:
            parts.append(_abbreviate(brand, 3))
        if variant:
            parts.append(_abbreviate(variant, 4))
        if origin:
            parts.append(_abbreviate(origin, 3))
        digits = sorted({EXTRA_CODES[_coerce_extra(extra)] for extra in extras})
        if digits:
            parts.append("".join(digits))
        return " ".join(parts)

    def decode(self, code: str) -> Classification:
        """Recover format and extras.

        The extras segment is always last. It is read from a code with all
        five segments, or from a shorter code whose final segment is made only
        of extra digits (``100 DUK 59``).

        Shorter codes are ambiguous: a brand, variant or origin abbreviation
        made only of digits 2-9 is indistinguishable from an extras segment.
        ``encode(ENVASADOS, brand="222")`` gives ``100 222``, which decodes as
        ARTESANAL. Only format and extras are promised to round-trip, and only
        for codes without such digit-only abbreviations.
        """
        parts = code.split(" ")
        fmt = _FORMAT_BY_CODE.get(parts[0])
        extras: frozenset[ProductExtra] = frozenset()
        if len(parts) >= 5 or (len(parts) >= 2 and _EXTRAS_SEGMENT.match(parts[-1])):
            extras = frozenset(
                _EXTRA_BY_CODE[digit] for digit in parts[-1] if digit in _EXTRA_BY_CODE
            )
        return Classification(format=fmt, extras=extras)

    def validate(self, code: str) -> CodecValidation:
        errors: list[str] = []
        parts = code.split(" ")
        if not _FORMAT_SEGMENT.match(parts[0]):
            errors.append("Invalid format code. Must be 100, 200, or 300")
        for index, pattern, message in _SEGMENT_RULES:
            if len(parts) > index and parts[index] and not pattern.match(parts[index]):
                errors.append(message)
        return CodecValidation(is_valid=not errors, errors=errors)

    def assert_valid(self, code: str) -> None:
        result = self.validate(code)
        if not result.is_valid:
            raise ValidationFailedError(f"Invalid classification code '{code}'", result.errors)

    def describe(self, code: str) -> str:
        decoded = self.decode(code)
        parts: list[str] = []
        if decoded.format is not None:
            parts.append(f"Format: {FORMAT_NAMES[decoded.format]}")
        if decoded.extras:
            ordered = sorted(decoded.extras, key=lambda extra: EXTRA_CODES[extra])
            parts.append("Extras: " + ", ".join(EXTRA_NAMES[extra] for extra in ordered))
        return " | ".join(parts)
