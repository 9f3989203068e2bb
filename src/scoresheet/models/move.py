"""Move-level IR models: extracted tokens and the reconciliation audit trail."""

from typing import Optional

from pydantic import Field, model_validator

from .base import (
    BaseIRModel,
    CorrectionError,
    CorrectionMethod,
    ExtractionStage,
    FrozenIRModel,
)


class MoveToken(FrozenIRModel):
    """A single candidate move string, in read order."""

    raw: str = Field(..., description="Verbatim text as extracted")
    index: int = Field(..., ge=0, description="Position in the token sequence")
    source: Optional[ExtractionStage] = Field(
        None, description="Extractor stage that produced this token"
    )


class CorrectionRecord(FrozenIRModel):
    """
    Outcome of reconciling one token.

    `corrected` is set exactly when the token was resolved (exact, pattern
    or levenshtein). Unresolved tokens carry an `error` instead.
    """

    index: int = Field(..., ge=0)
    original: str = Field(..., description="Raw token text")
    normalized: str = Field(..., description="Token after move-number stripping")
    corrected: Optional[str] = None
    method: CorrectionMethod
    distance: Optional[int] = Field(None, ge=0, description="Edit distance, if computed")
    error: Optional[CorrectionError] = None

    @model_validator(mode="after")
    def check_resolution(self) -> "CorrectionRecord":
        resolved = self.method != CorrectionMethod.NONE
        if resolved != (self.corrected is not None):
            raise ValueError(
                f"corrected must be set iff method is resolved (method={self.method.value})"
            )
        if resolved and self.error is not None:
            raise ValueError("resolved records cannot carry an error")
        return self

    @property
    def is_valid(self) -> bool:
        """Token was legal as written."""
        return self.method == CorrectionMethod.EXACT

    @property
    def is_corrected(self) -> bool:
        """Token was repaired to a legal move."""
        return self.method in (CorrectionMethod.PATTERN, CorrectionMethod.LEVENSHTEIN)

    @property
    def is_invalid(self) -> bool:
        """Token could not be resolved."""
        return self.method == CorrectionMethod.NONE

    @property
    def output(self) -> str:
        """Move emitted for this token: correction, else the normalized text."""
        return self.corrected if self.corrected is not None else self.normalized

    def describe(self) -> str:
        """Short human-readable summary, e.g. `eH -> e4 (pattern)`."""
        if self.corrected is None:
            reason = self.error.value if self.error else "invalid"
            return f"{self.original} (invalid: {reason})"
        if self.is_valid:
            return self.corrected
        return f"{self.normalized} -> {self.corrected} ({self.method.value})"


class ReconciliationStats(FrozenIRModel):
    """Counts over the records of one run."""

    total: int = Field(default=0, ge=0)
    valid: int = Field(default=0, ge=0)
    corrected: int = Field(default=0, ge=0)
    invalid: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_totals(self) -> "ReconciliationStats":
        if self.valid + self.corrected + self.invalid != self.total:
            raise ValueError("valid + corrected + invalid must equal total")
        return self

    @classmethod
    def from_records(cls, records: list[CorrectionRecord]) -> "ReconciliationStats":
        """Count records by method tag."""
        return cls(
            total=len(records),
            valid=sum(1 for r in records if r.is_valid),
            corrected=sum(1 for r in records if r.is_corrected),
            invalid=sum(1 for r in records if r.is_invalid),
        )

    @property
    def correction_rate(self) -> float:
        """Share of tokens that needed a repair."""
        if self.total == 0:
            return 0.0
        return self.corrected / self.total


class ReconciliationResult(BaseIRModel):
    """Aggregate output of one reconciliation run."""

    original_moves: list[str] = Field(default_factory=list)
    corrected_moves: list[str] = Field(default_factory=list)
    records: list[CorrectionRecord] = Field(default_factory=list)
    stats: ReconciliationStats = Field(default_factory=ReconciliationStats)

    @model_validator(mode="after")
    def check_lengths(self) -> "ReconciliationResult":
        if not (
            len(self.original_moves) == len(self.corrected_moves) == len(self.records)
        ):
            raise ValueError("original, corrected and records must have equal length")
        if self.stats.total != len(self.records):
            raise ValueError("stats.total must equal the number of records")
        return self

    @classmethod
    def from_records(cls, records: list[CorrectionRecord]) -> "ReconciliationResult":
        """Assemble moves and counts from per-token records."""
        return cls(
            original_moves=[r.original for r in records],
            corrected_moves=[r.output for r in records],
            records=list(records),
            stats=ReconciliationStats.from_records(records),
        )

    @classmethod
    def empty(cls) -> "ReconciliationResult":
        """Result for a document that yielded no tokens."""
        return cls()

    @property
    def is_empty(self) -> bool:
        """No tokens were reconciled."""
        return not self.records

    @property
    def corrections(self) -> list[CorrectionRecord]:
        """Records that were repaired or left unresolved."""
        return [r for r in self.records if not r.is_valid]
