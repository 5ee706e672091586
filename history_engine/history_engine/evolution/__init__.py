from history_engine.evolution.tracker import EvolutionTracker, derive_status

__all__ = ["EvolutionTracker", "derive_status"]
