"""
Autonomy entry point: solves open-ended goals with a self-correcting swarm loop.
"""
from typing import Optional

from pixelsmith.config import config
from pixelsmith.schemas import RepoContext
from pixelsmith.swarm.executor import SwarmExecutor
from pixelsmith.swarm.factory import SwarmFactory
from pixelsmith.swarm.schemas import AgentFeedback, AgentTaskResult, AutonomyGoal, SuspendedState
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "AutonomyCore")


class AutonomyCore:
    """
    Fabricate a swarm, run it and, on failure, feed the error back into the goal before
    fabricating a fresh swarm. A suspension is returned to the caller immediately.
    """

    def __init__(
        self,
        factory: Optional[SwarmFactory] = None,
        executor: Optional[SwarmExecutor] = None,
        max_retries: int = None
    ):
        self.factory = factory or SwarmFactory()
        self.executor = executor or SwarmExecutor()
        self.max_retries = max_retries or config.SWARM_MAX_RETRIES

    async def solve_unknown(
        self,
        goal: AutonomyGoal,
        repo_context: Optional[RepoContext] = None,
        correlation_id: Optional[str] = None
    ) -> AgentTaskResult:
        logger.info(f"Solving goal {goal.id}: {goal.description[:120]}", correlation_id=correlation_id)

        last_result: Optional[AgentTaskResult] = None
        for attempt in range(1, self.max_retries + 1):
            if last_result is not None:
                goal = with_failure(goal, attempt - 1, last_result)
                logger.info(
                    f"Retry {attempt - 1}/{self.max_retries}, previous error: {last_result.error}",
                    correlation_id=correlation_id
                )

            swarm = await self.factory.fabricate_swarm(
                goal.description,
                f"Context: {goal.context}\nConstraints: {', '.join(goal.technical_constraints)}",
                correlation_id=correlation_id
            )
            logger.info(
                f"Attempt {attempt}: fabricated swarm {swarm.id} with {len(swarm.agents)} agents",
                correlation_id=correlation_id
            )

            result = await self.executor.run_swarm(
                swarm, goal.description, repo_context=repo_context, correlation_id=correlation_id
            )

            if result.success:
                logger.info(
                    f"Goal solved on attempt {attempt}, output {len(result.output)} chars",
                    correlation_id=correlation_id
                )
                return result
            if result.command is not None:
                logger.info(
                    f"Attempt {attempt} suspended on command {result.command.type}",
                    correlation_id=correlation_id
                )
                return result

            logger.warning(f"Attempt {attempt} failed: {result.error}", correlation_id=correlation_id)
            last_result = result

        logger.error(f"All {self.max_retries} attempts exhausted for goal {goal.id}", correlation_id=correlation_id)
        return last_result or AgentTaskResult.failed(
            f'Failed after {self.max_retries} attempts. The system could not solve: "{goal.description}"'
        )

    async def resume(
        self,
        suspended_state: SuspendedState,
        feedback: AgentFeedback,
        correlation_id: Optional[str] = None
    ) -> AgentTaskResult:
        logger.info(
            f"Resuming swarm {suspended_state.swarm_id} at agent {suspended_state.agent_id}",
            correlation_id=correlation_id
        )
        return await self.executor.resume_swarm(
            suspended_state.swarm, suspended_state, feedback, correlation_id=correlation_id
        )


def with_failure(goal: AutonomyGoal, attempt: int, result: AgentTaskResult) -> AutonomyGoal:
    """Return a copy of `goal` whose context and constraints carry the previous failure."""
    error = result.error or "Unknown error"
    context = f"{goal.context}\n\n--- PREVIOUS ATTEMPT {attempt} FAILED ---\nError: {error}"
    if result.retry_suggestion:
        context += f"\nSuggested fix: {result.retry_suggestion}"
    constraints = goal.technical_constraints + [f"AVOID: {result.error or 'Previous approach failed'}"]
    return goal.model_copy(update={"context": context, "technical_constraints": constraints})
