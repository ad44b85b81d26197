from survival_agent.models.trainer import LOOCVTrainer

__all__ = ["LOOCVTrainer"]
