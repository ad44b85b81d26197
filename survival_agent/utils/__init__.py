from survival_agent.utils.logger import get_logger, set_level

__all__ = ["get_logger", "set_level"]
