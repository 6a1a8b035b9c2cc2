from .scorer import filter_and_score, passes_hard_filters, score_model, ScoreBreakdown, select_models

__all__ = ["ScoreBreakdown", "filter_and_score", "passes_hard_filters", "score_model", "select_models"]
