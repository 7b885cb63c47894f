from recordmodel.engine.persistence import ModelDefinition, PersistenceEngine

__all__ = ["ModelDefinition", "PersistenceEngine"]
