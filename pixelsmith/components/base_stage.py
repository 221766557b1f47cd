"""
Base stage class with common patterns for pipeline graph integration
"""

from abc import ABC, abstractmethod
from typing import Any, Dict

from pixelsmith.exceptions import PipelineTimeoutError
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "BaseStage")


class BaseStage(ABC):
    """
    Abstract base class for all pipeline stages.

    Provides:
    - Graph integration (execute_node pattern)
    - Graceful degradation: a failing stage becomes a warning plus a safe default
    - Logging

    Subclasses MUST implement:
    - run(**kwargs): Public API
    - _execute(state): Graph integration, returns the state updates

    Subclasses CAN optionally override:
    - _fallback(state): State updates used when the stage fails
    """

    def __init__(self, stage_name: str):
        """
        Initialize stage.

        Args:
            stage_name: Stage identifier used in logs and warnings (e.g., "Router")
        """
        self.stage_name = stage_name

    @abstractmethod
    async def run(self, **kwargs) -> Any:
        """
        Public API for direct stage usage (outside the graph).

        Example:
            router = Router()
            strategy = await router.run(files=[...], instructions="...")
        """
        pass

    @abstractmethod
    async def _execute(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Internal execution logic for graph integration.

        Should:
        1. Extract data from state
        2. Call self.run()
        3. Return the state keys it produced

        Args:
            state: Current pipeline state

        Returns:
            State updates
        """
        pass

    async def execute_node(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute stage as a graph node.

        Don't override this method in subclasses.

        A stage failure never aborts the run: it is logged, recorded as a warning and
        replaced by _fallback(). Only the pipeline timeout propagates.

        Args:
            state: Current pipeline state

        Returns:
            State updates
        """
        correlation_id = state.get("correlation_id")
        try:
            updates = await self._execute(state)
            logger.debug(f"{self.stage_name} completed successfully", correlation_id=correlation_id)
            return updates

        except PipelineTimeoutError:
            raise

        except Exception as e:
            warning = f"{self.stage_name} failed: {e}"
            logger.warning(warning, correlation_id=correlation_id)

            updates = self._fallback(state)
            updates["warnings"] = list(state.get("warnings", [])) + [warning]
            return updates

    def _fallback(self, state: Dict[str, Any]) -> Dict[str, Any]:
        """
        Return state updates used when the stage fails.

        Override in subclass to provide a safe default.
        Default: empty dict (state unchanged apart from the warning)
        """
        return {}
