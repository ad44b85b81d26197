from survival_agent.analysis.explorer import DataExplorer

__all__ = ["DataExplorer"]
