from survival_agent.evaluation.evaluator import ModelEvaluator
from survival_agent.evaluation.reporter import Reporter

__all__ = ["ModelEvaluator", "Reporter"]
