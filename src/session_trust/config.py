"""Engine configuration — thresholds, sample sizes and score weights.

All engine operations accept an optional :class:`EngineConfig`. Sensible
defaults are provided for every parameter, so most callers never build one
explicitly.
"""
from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class ScoringPolicy(BaseModel):
    """Weights used by ``compute_trust_score``.

    Parameters
    ----------
    base_score:
        Neutral starting point before any adjustment.
    intervention_penalty:
        Deduction per human intervention.
    intervention_density_penalty:
        Deduction per unit of intervention density (interventions per 1k tokens).
    max_intervention_penalty:
        Cap on the combined intervention deduction.
    no_goal_shift_bonus:
        Bonus when the session had no goal shifts.
    goal_shift_penalty / max_goal_shift_penalty:
        Per-shift deduction and its cap.
    commit_bonus:
        Bonus for producing a commit, granted only when the session did not
        end with an error.
    push_bonus:
        Bonus for pushing to a remote.
    no_rework_bonus:
        Bonus when no rework annotation was recorded.
    rework_penalty / max_rework_penalty:
        Per-rework deduction and its cap.
    blocker_penalty / max_blocker_penalty:
        Per-blocker deduction and its cap.
    error_density_penalty:
        Deduction multiplied by the error density (errors / events, 0 – 1).
    clean_end_bonus:
        Bonus when the last event is not an error.
    ended_with_error_penalty:
        Deduction when the last event is an error.
    """

    base_score: float = Field(default=0.5, ge=0.0, le=1.0)
    intervention_penalty: float = Field(default=0.1, ge=0.0)
    intervention_density_penalty: float = Field(default=0.05, ge=0.0)
    max_intervention_penalty: float = Field(default=0.35, ge=0.0)
    no_goal_shift_bonus: float = Field(default=0.1, ge=0.0)
    goal_shift_penalty: float = Field(default=0.05, ge=0.0)
    max_goal_shift_penalty: float = Field(default=0.15, ge=0.0)
    commit_bonus: float = Field(default=0.15, ge=0.0)
    push_bonus: float = Field(default=0.05, ge=0.0)
    no_rework_bonus: float = Field(default=0.1, ge=0.0)
    rework_penalty: float = Field(default=0.1, ge=0.0)
    max_rework_penalty: float = Field(default=0.2, ge=0.0)
    blocker_penalty: float = Field(default=0.05, ge=0.0)
    max_blocker_penalty: float = Field(default=0.15, ge=0.0)
    error_density_penalty: float = Field(default=0.2, ge=0.0)
    clean_end_bonus: float = Field(default=0.05, ge=0.0)
    ended_with_error_penalty: float = Field(default=0.1, ge=0.0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_caps(self) -> "ScoringPolicy":
        if self.max_intervention_penalty < self.intervention_penalty:
            raise ValueError(
                "max_intervention_penalty must be >= intervention_penalty, got "
                f"{self.max_intervention_penalty} < {self.intervention_penalty}"
            )
        return self


class EngineConfig(BaseModel):
    """Configuration constants consumed by the engine.

    Parameters
    ----------
    autonomy_threshold:
        Minimum trust score for a session with zero interventions to count
        as autonomous.
    confidence_saturation_n:
        Sample size at which an aggregate's confidence reaches 1.0.
    min_insight_sample_size:
        Categories with fewer sessions are excluded from comparative insights.
    insight_top_n:
        Number of strongest positive and negative deviations reported per metric.
    min_prediction_confidence:
        Aggregates below this confidence are not used for prediction.
    scoring:
        Weights for the per-session trust score.
    """

    autonomy_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    confidence_saturation_n: int = Field(default=20, ge=1)
    min_insight_sample_size: int = Field(default=5, ge=1)
    insight_top_n: int = Field(default=3, ge=1)
    min_prediction_confidence: float = Field(default=0.15, ge=0.0, le=1.0)
    scoring: ScoringPolicy = Field(default_factory=ScoringPolicy)

    model_config = {"frozen": True}

    @classmethod
    def from_file(cls, path: Path | str) -> "EngineConfig":
        """Load a config from a JSON file.

        Keys not present in the file keep their defaults.

        Raises
        ------
        pydantic.ValidationError
            If a value violates its constraint.
        """
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.model_validate(data)


DEFAULT_CONFIG = EngineConfig()


__all__ = ["DEFAULT_CONFIG", "EngineConfig", "ScoringPolicy"]
