"""Custom exceptions for the wine simulation."""

class WineSimError(Exception):
    """Base exception for simulation errors."""
    pass

class ConfigurationError(WineSimError):
    """Exception raised for configuration errors."""
    pass

class ValidationError(WineSimError):
    """Base exception for validation errors."""
    pass

class ValidationTypeError(ValidationError):
    """Exception raised for type validation errors."""
    pass

class ValidationRangeError(ValidationError):
    """Exception raised for range validation errors."""
    pass

class PersistenceError(WineSimError):
    """Exception raised when a saved state cannot be read or written."""
    pass

class SimulationError(WineSimError):
    """Exception raised when a simulated day cannot be computed."""
    pass
