"""
Custom exceptions for pixelsmith
"""

class PixelsmithError(Exception):
    """Base exception for all pixelsmith errors"""
    pass

class ConfigurationError(PixelsmithError):
    """Raised when configuration is invalid"""
    pass

class ModelClientError(PixelsmithError):
    """Raised when a model call fails after all retries"""
    pass

class SurveyorError(PixelsmithError):
    """Raised when layout surveying fails"""
    pass

class PhysicistError(PixelsmithError):
    """Raised when motion extraction fails"""
    pass

class PhotographerError(PixelsmithError):
    """Raised when asset generation fails"""
    pass

class AssetExtractionError(PixelsmithError):
    """Raised when cropping a custom visual fails"""
    pass

class BuilderError(PixelsmithError):
    """Raised when code synthesis fails"""
    pass

class LiveEditError(PixelsmithError):
    """Raised when a live edit fails"""
    pass

class CriticError(PixelsmithError):
    """Raised when visual critique fails"""
    pass

class RenderError(PixelsmithError):
    """Raised when the screenshot service cannot render a file set"""
    pass

class SearchError(PixelsmithError):
    """Raised when web search fails"""
    pass

class PipelineTimeoutError(PixelsmithError):
    """Raised when a pipeline run exceeds its wall-clock budget"""

    def __init__(self, step: str, elapsed: float, allowed: float):
        self.step = step
        self.elapsed = elapsed
        self.allowed = allowed
        super().__init__(
            f"Pipeline timeout: {step} aborted after {round(elapsed)}s (limit {round(allowed)}s)"
        )
