"""
Agent swarm executor: phased sub-agents with a remote-command suspend/resume protocol.
"""
import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pixelsmith.components.search.web_search import WebSearch, format_results
from pixelsmith.config import config
from pixelsmith.constants import (
    COMMAND_TYPES,
    PHASE_CODING,
    PHASE_EXECUTION,
    PHASE_EXECUTION_RESUME,
    PHASE_PLANNING,
    PHASE_QA_ENGINEERING,
    PHASE_RESEARCH,
    ROLE_ARCHITECT,
    ROLE_CODER,
    ROLE_QA_ENGINEER,
    ROLE_RESEARCHER,
    SEARCH_CAPABILITIES,
    SEARCH_SKIP_TOKEN,
    TESTER_ROLES,
    VERDICT_COMMAND,
    VERDICT_FAIL,
    VERDICT_INCONCLUSIVE,
    VERDICT_PASS,
    ZERO_BUG_MARKER,
)
from pixelsmith.llm.llm_client import LLMClient
from pixelsmith.schemas import RepoContext
from pixelsmith.swarm.context import WorkflowContext
from pixelsmith.swarm.prompt import (
    CODE_CONTEXT,
    CODE_ONLY_SYSTEM_PROMPT,
    CODING_PROMPT,
    EXECUTION_PROMPT,
    FEEDBACK_INPUT,
    QA_INSTRUCTION,
    RESUME_PROMPT,
    SCREENSHOT_NOTE,
    SEARCH_QUERY_PROMPT,
    STANDARD_PROMPT,
    TESTS_BLOCK,
)
from pixelsmith.swarm.schemas import (
    AgentFeedback,
    AgentSwarm,
    AgentTaskResult,
    Command,
    FabricatedAgent,
    SuspendedState,
)
from pixelsmith.utils.correlation import generate_prefixed_id
from pixelsmith.utils.decode import Malformed, decode_json, extract_code, preview
from pixelsmith.utils.logger import get_logger

logger = get_logger(__name__, "SwarmExecutor")

VERIFY_CODE_CHARS = 5000


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single agent step. Failed when `error` is set."""
    output: str = ""
    error: Optional[str] = None
    retry_suggestion: Optional[str] = None
    command: Optional[Command] = None
    verdict: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SwarmExecutor:
    """
    Runs a fabricated swarm through its phases in strict order:
    RESEARCH -> PLANNING -> QA_ENGINEERING -> CODING -> EXECUTION.

    Research and (unless TDD is required) QA failures are logged and skipped. Planning,
    coding and verification failures end the run with a retry suggestion. A tester asking
    for a remote command suspends the run; `resume_swarm` picks it up with the feedback.
    """

    def __init__(
        self,
        model: str = None,
        max_tokens: int = None,
        web_search: Optional[WebSearch] = None,
        strict_verification: Optional[bool] = None
    ):
        cfg = config.get_swarm_config()
        self.model = model or cfg["model"]
        self.max_tokens = max_tokens or cfg["max_tokens"]
        self.min_output_chars = cfg["min_output_chars"]
        self.test_context_chars = cfg["test_context_chars"]
        self.code_context_chars = cfg["code_context_chars"]
        self.feedback_output_chars = cfg["feedback_output_chars"]
        self.command_timeout_ms = cfg["command_timeout_ms"]
        self.strict_verification = (
            strict_verification if strict_verification is not None else cfg["strict_verification"]
        )
        self.web_search = web_search or WebSearch()
        self._clients: Dict[float, LLMClient] = {}

        logger.debug(f"Initialised SwarmExecutor with model={self.model}", correlation_id="INIT")

    def _client_for(self, agent: FabricatedAgent) -> LLMClient:
        """One client per temperature; agents sharing a temperature share a client."""
        if agent.temperature not in self._clients:
            self._clients[agent.temperature] = LLMClient(
                model=self.model, temperature=agent.temperature, max_tokens=self.max_tokens
            )
        return self._clients[agent.temperature]

    async def run_swarm(
        self,
        swarm: AgentSwarm,
        initial_input: str,
        repo_context: Optional[RepoContext] = None,
        correlation_id: Optional[str] = None
    ) -> AgentTaskResult:
        ctx = WorkflowContext()
        tdd = requires_tdd(initial_input, repo_context)
        if tdd:
            ctx = self._log(ctx, f"{ZERO_BUG_MARKER} Critical files detected in task, TDD enforcement enabled", correlation_id)

        logger.info(
            f"Running swarm {swarm.id} with {len(swarm.agents)} agents (tdd={tdd})",
            correlation_id=correlation_id
        )

        # Research: never blocks
        for agent in swarm.agents_with_role(ROLE_RESEARCHER):
            ctx, step = await self._execute_agent_step(agent, initial_input, PHASE_RESEARCH, ctx, correlation_id)
            if not step.ok:
                ctx = self._log(ctx, f"[{PHASE_RESEARCH}] Agent {agent.name} failed (non-critical): {step.error}", correlation_id)

        # Planning
        plan = initial_input
        reasoning: List[str] = []
        for agent in swarm.agents_with_role(ROLE_ARCHITECT):
            ctx, step = await self._execute_agent_step(agent, plan, PHASE_PLANNING, ctx, correlation_id)
            if not step.ok:
                logger.warning(f"[{PHASE_PLANNING}] Agent {agent.name} failed: {step.error}", correlation_id=correlation_id)
                return AgentTaskResult.failed(
                    f"Architecture phase failed ({agent.name}): {step.error}",
                    "Try a different architectural approach or simplify the design."
                )
            plan += f"\n\nArchitecture Plan:\n{step.output}"
            reasoning.append(step.output)

        # QA engineering: tests before code
        test_code = ""
        for agent in swarm.agents_with_role(ROLE_QA_ENGINEER):
            ctx, step = await self._execute_agent_step(
                agent, plan + QA_INSTRUCTION, PHASE_QA_ENGINEERING, ctx, correlation_id
            )
            if not step.ok:
                if tdd:
                    logger.warning(f"{ZERO_BUG_MARKER} QA failed and TDD is required: {step.error}", correlation_id=correlation_id)
                    return AgentTaskResult.failed(
                        f"{ZERO_BUG_MARKER} Tests must be written before modifying critical files. QA failed: {step.error}",
                        "Ensure the QA_ENGINEER agent can generate tests. Task involves critical files that require TDD."
                    )
                ctx = self._log(ctx, f"[{PHASE_QA_ENGINEERING}] Agent {agent.name} failed (non-critical): {step.error}", correlation_id)
                continue

            tests = extract_code(step.output)
            ctx = ctx.remember(f"{agent.name}_tests", tests)
            if tests:
                test_code = tests
            ctx = self._log(ctx, f"[{PHASE_QA_ENGINEERING}] Agent {agent.name} generated tests: {len(tests)} chars", correlation_id)

        if tdd and not test_code.strip():
            logger.warning(f"{ZERO_BUG_MARKER} No tests generated but TDD is required", correlation_id=correlation_id)
            return AgentTaskResult.failed(
                f"{ZERO_BUG_MARKER} No tests were generated, but this task modifies critical files. TDD is mandatory.",
                "Add a QA_ENGINEER agent to the swarm or ensure it can generate tests."
            )

        if test_code:
            plan += TESTS_BLOCK.format(tests=test_code[:self.test_context_chars])

        # Coding
        final_code = ""
        for agent in swarm.agents_with_role(ROLE_CODER):
            ctx, step = await self._execute_agent_step(agent, plan, PHASE_CODING, ctx, correlation_id)
            if not step.ok:
                logger.warning(f"[{PHASE_CODING}] Agent {agent.name} failed: {step.error}", correlation_id=correlation_id)
                return AgentTaskResult.failed(
                    f"Code generation failed ({agent.name}): {step.error}",
                    f'The coding agent "{agent.name}" encountered an error. Consider breaking the task '
                    f"into smaller steps or using a different implementation approach."
                )
            final_code = extract_code(step.output)
            ctx = ctx.remember(agent.name, final_code)

        if len(final_code.strip()) < self.min_output_chars:
            return AgentTaskResult.failed(
                "Coding phase produced empty or insufficient output.",
                "The coders did not produce usable code. Try providing more specific instructions or examples."
            )

        # Execution and verification
        ctx, outcome = await self._run_testers(
            swarm, swarm.agents_with_role(*TESTER_ROLES), final_code, ctx, correlation_id
        )
        if outcome is not None:
            return outcome

        logger.info(f"[COMPLETE] Swarm {swarm.id} finished. Output: {len(final_code)} chars", correlation_id=correlation_id)
        return AgentTaskResult.succeeded(
            final_code,
            artifacts=[dict(ctx.files)],
            reasoning_summary="\n".join(reasoning).strip() or None,
        )

    async def resume_swarm(
        self,
        swarm: AgentSwarm,
        suspended_state: SuspendedState,
        feedback: AgentFeedback,
        correlation_id: Optional[str] = None
    ) -> AgentTaskResult:
        """Continue a suspended run with the command result from the remote executor."""
        ctx = WorkflowContext(memory=dict(suspended_state.memory))

        agent = swarm.find_agent(suspended_state.agent_id)
        if agent is None:
            return AgentTaskResult.failed("Resuming agent not found in swarm")

        ctx = self._log(
            ctx, f"[RESUME] Resuming agent {agent.name} (exit_code={feedback.exit_code})", correlation_id
        )

        coders = swarm.agents_with_role(ROLE_CODER)
        final_code = ctx.memory.get(coders[-1].name, "") if coders else ""

        feedback_input = FEEDBACK_INPUT.format(
            command_type=suspended_state.command.type,
            command_args=suspended_state.command.command,
            exit_code=feedback.exit_code,
            output=feedback.output[:self.feedback_output_chars],
            screenshot_note=SCREENSHOT_NOTE if feedback.screenshot else "",
            code_context=CODE_CONTEXT.format(code=final_code[:self.code_context_chars]) if final_code else "",
        )
        ctx, step = await self._execute_agent_step(agent, feedback_input, PHASE_EXECUTION_RESUME, ctx, correlation_id)

        if step.command is not None:
            ctx = self._log(ctx, f"[{PHASE_EXECUTION_RESUME}] Agent {agent.name} chained command: {step.command.type}", correlation_id)
            state = suspended_state.model_copy(
                update={"swarm": swarm, "command": step.command, "memory": dict(ctx.memory)}
            )
            return AgentTaskResult.suspended(final_code, state)

        if not step.ok:
            return AgentTaskResult.failed(
                f"Verification failed after feedback: {step.error}", step.retry_suggestion, output=final_code
            )

        if not final_code:
            return AgentTaskResult.failed("Could not recover code for remaining testers")

        testers = swarm.agents_with_role(*TESTER_ROLES)
        remaining = testers[testers.index(agent) + 1:] if agent in testers else []

        ctx, outcome = await self._run_testers(swarm, remaining, final_code, ctx, correlation_id)
        if outcome is not None:
            return outcome

        logger.info(f"[COMPLETE] Swarm {swarm.id} finished after resume", correlation_id=correlation_id)
        return AgentTaskResult.succeeded(final_code, artifacts=[dict(ctx.files)])

    async def _run_testers(
        self,
        swarm: AgentSwarm,
        testers: List[FabricatedAgent],
        code: str,
        ctx: WorkflowContext,
        correlation_id: Optional[str]
    ) -> Tuple[WorkflowContext, Optional[AgentTaskResult]]:
        """Verify `code` with each tester in order. Returns a result only on suspension or failure."""
        for agent in testers:
            ctx, step = await self._execute_agent_step(agent, code, PHASE_EXECUTION, ctx, correlation_id)

            if step.command is not None:
                ctx = self._log(ctx, f"[{PHASE_EXECUTION}] Agent {agent.name} requested command: {step.command.type}", correlation_id)
                state = SuspendedState(swarm=swarm, agent_id=agent.id, command=step.command, memory=dict(ctx.memory))
                return ctx, AgentTaskResult.suspended(code, state)

            if not step.ok:
                ctx = self._log(ctx, f"[{PHASE_EXECUTION}] Verification failed: {step.error}", correlation_id)
                return ctx, AgentTaskResult.failed(
                    f"Verification failed ({agent.name}): {step.error}", step.retry_suggestion, output=code
                )

        return ctx, None

    async def _execute_agent_step(
        self,
        agent: FabricatedAgent,
        task: str,
        phase: str,
        ctx: WorkflowContext,
        correlation_id: Optional[str]
    ) -> Tuple[WorkflowContext, StepResult]:
        ctx = self._log(ctx, f"[{phase}] Agent {agent.name} starting...", correlation_id)
        client = self._client_for(agent)

        try:
            search_context = ""
            if self.web_search.enabled and any(c in SEARCH_CAPABILITIES for c in agent.capabilities):
                ctx, search_context = await self._search_context(agent, task, phase, ctx, client, correlation_id)

            if phase in (PHASE_EXECUTION, PHASE_EXECUTION_RESUME):
                if phase == PHASE_EXECUTION_RESUME:
                    prompt = RESUME_PROMPT.format(system_prompt=agent.system_prompt, feedback=task)
                else:
                    prompt = EXECUTION_PROMPT.format(system_prompt=agent.system_prompt, code=task[:VERIFY_CODE_CHARS])

                text = await client.invoke(prompt, correlation_id=correlation_id)
                return self._interpret_verdict(agent, text, phase, ctx, correlation_id)

            if phase in (PHASE_CODING, PHASE_QA_ENGINEERING):
                prompt = CODING_PROMPT.format(
                    system_prompt=agent.system_prompt,
                    memory=ctx.memory_json(),
                    search_context=f"\n### Research Results\n{search_context}\n" if search_context else "",
                    task=task,
                )
                text = await client.invoke(prompt, system_prompt=CODE_ONLY_SYSTEM_PROMPT, correlation_id=correlation_id)
            else:
                prompt = STANDARD_PROMPT.format(
                    system_prompt=agent.system_prompt,
                    memory=ctx.memory_json(),
                    search_context=search_context,
                    task=task,
                )
                text = await client.invoke(prompt, correlation_id=correlation_id)

            ctx = ctx.remember(agent.name, text)
            ctx = ctx.log(f"[{agent.name}]: {preview(text, 100)}")
            return ctx, StepResult(output=text)

        except Exception as e:
            message = str(e) or type(e).__name__
            ctx = self._log(ctx, f"[{phase}] Agent {agent.name} error: {message}", correlation_id)
            return ctx, StepResult(
                error=message,
                retry_suggestion=f'Agent "{agent.name}" in {phase} phase threw: {message}'
            )

    async def _search_context(
        self,
        agent: FabricatedAgent,
        task: str,
        phase: str,
        ctx: WorkflowContext,
        client: LLMClient,
        correlation_id: Optional[str]
    ) -> Tuple[WorkflowContext, str]:
        """Ask the agent what to look up; a reply containing SKIP means no search."""
        query = (await client.invoke(
            SEARCH_QUERY_PROMPT.format(system_prompt=agent.system_prompt, task=task),
            correlation_id=correlation_id
        )).strip()

        if not query or SEARCH_SKIP_TOKEN in query:
            return ctx, ""

        ctx = self._log(ctx, f"[{phase}] Searching: \"{query}\"", correlation_id)
        try:
            results = await self.web_search.search(query, correlation_id=correlation_id)
        except Exception as e:
            ctx = self._log(ctx, f"[{phase}] Search failed, continuing without results: {e}", correlation_id)
            return ctx, ""

        if not results:
            return ctx, ""
        return ctx, f"\n\n### Search Results\n{format_results(results)}"

    def _interpret_verdict(
        self,
        agent: FabricatedAgent,
        text: str,
        phase: str,
        ctx: WorkflowContext,
        correlation_id: Optional[str]
    ) -> Tuple[WorkflowContext, StepResult]:
        step = parse_verdict(text, self.command_timeout_ms)
        if step.verdict != VERDICT_INCONCLUSIVE:
            return ctx, step

        if self.strict_verification:
            return ctx, StepResult(
                output=text,
                error="Verifier returned no verdict",
                retry_suggestion="The verifier must reply with a JSON command or a pass/fail verdict.",
                verdict=VERDICT_FAIL,
            )

        logger.warning(
            f"[{phase}] Agent {agent.name} returned no verdict, continuing. Preview: {preview(text)}",
            correlation_id=correlation_id
        )
        return ctx.log(f"[{phase}] Agent {agent.name} verdict inconclusive"), step

    @staticmethod
    def _log(ctx: WorkflowContext, message: str, correlation_id: Optional[str]) -> WorkflowContext:
        logger.info(message, correlation_id=correlation_id)
        return ctx.log(message)


def requires_tdd(task: str, repo_context: Optional[RepoContext]) -> bool:
    """True iff critical files require tests and the task mentions one (basename or full path)."""
    if repo_context is None or not repo_context.critical_files_require_tests:
        return False

    lowered = task.lower()
    for path in repo_context.critical_files:
        basename = path.rstrip("/").split("/")[-1].lower()
        if (basename and basename in lowered) or path.lower() in lowered:
            return True
    return False


def parse_verdict(text: str, command_timeout_ms: int = 30000) -> StepResult:
    """
    Classify a tester reply.

    A JSON `command` becomes a Command request; `verdict` pass/fail map directly; anything else
    (free text, JSON without either key) is inconclusive. Unknown command types fail.
    """
    decoded = decode_json(text)
    if isinstance(decoded, Malformed):
        return StepResult(output=text, verdict=VERDICT_INCONCLUSIVE)

    data = decoded.value
    command_type = data.get("command")
    if command_type:
        if command_type not in COMMAND_TYPES:
            return StepResult(
                output=text,
                error=f"Unsupported command type '{command_type}'",
                retry_suggestion=f"Use one of the supported commands: {', '.join(COMMAND_TYPES)}.",
                verdict=VERDICT_FAIL,
            )
        arguments = data.get("arguments")
        if arguments is None:
            arguments = ""
        elif not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return StepResult(
            output=str(data.get("thought") or ""),
            command=Command(
                id=generate_prefixed_id("cmd"),
                type=command_type,
                command=arguments,
                timeout=command_timeout_ms,
            ),
            verdict=VERDICT_COMMAND,
        )

    verdict = str(data.get("verdict") or "").lower()
    if verdict == VERDICT_FAIL:
        return StepResult(
            output=text,
            error=str(data.get("error") or data.get("thought") or "Verifier reported failure"),
            retry_suggestion="Fix the issues identified in verification.",
            verdict=VERDICT_FAIL,
        )
    if verdict == VERDICT_PASS:
        return StepResult(output=text, verdict=VERDICT_PASS)
    return StepResult(output=text, verdict=VERDICT_INCONCLUSIVE)
