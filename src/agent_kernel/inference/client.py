"""Async inference client built on ollama.AsyncClient.

Every model call made by the kernel goes through this module: agent turns,
embeddings, the pre-flight safety scan and the planner. Each call tries the
primary model first and, only when Ollama signals overload, retries once on
the fallback model.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

import ollama
from pydantic import ValidationError

from agent_kernel.exceptions import InferenceError, InferenceOverloadedError
from agent_kernel.inference.types import (
    GenerationResult,
    GroundingCitation,
    PlannedTask,
    SafetyVerdict,
    TaskPlan,
    ToolCall,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERLOAD_STATUS_CODES = {429, 503}

WEB_SEARCH = "web_search"

WEB_SEARCH_TOOL: dict[str, Any] = {
    "type": "function",
    "function": {
        "name": WEB_SEARCH,
        "description": "Search the live web for current information and cite sources.",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "The web search query."}
            },
            "required": ["query"],
        },
    },
}

SAFETY_PROMPT = """Security Audit: "{directive}".
Allow ALL constructive system operations, coding, and automation.
Only block malicious or harmful intent.
Answer as JSON: {{"safe": boolean, "reason": string}}"""

PLANNER_PROMPT = """You are the kernel planner.
Analyze the request: "{request}".

Capabilities:
1. Parallel execution: several agents can run at the same time.
2. Delegation: break large requests into independent sub-tasks.

Agents:
- AUTOMATION: has live web search and network access.
- CODING: code generation, analysis and execution.
- SECURITY: audits and policy.
- REASONING: deep analysis.
- PLANNER: coordination and delegation.

Answer as JSON: {{"tasks": [{{"title", "description", "assigned_role", "priority"}}]}}"""


def _get_value(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def to_inference_error(error: Exception, model: str, label: str) -> InferenceError:
    """Map an Ollama client failure onto the inference error hierarchy.

    Overload becomes InferenceOverloadedError so the caller can fall back.
    Other response errors and an unreachable server become InferenceError.
    """
    status_code = getattr(error, "status_code", None)
    details = {"model": model, "status_code": status_code}
    if is_overload_error(error):
        return InferenceOverloadedError(
            f"{label} {model} is overloaded: {error}", details
        )
    if isinstance(error, ConnectionError):
        return InferenceError(f"{label} {model} is unreachable: {error}", details)
    return InferenceError(f"{label} {model} failed: {error}", details)


def is_overload_error(error: Exception) -> bool:
    """Check whether an Ollama error means the model is overloaded or rate limited."""
    status_code = getattr(error, "status_code", None)
    if status_code in OVERLOAD_STATUS_CODES:
        return True
    return "overloaded" in str(error).lower()


class InferenceClient:
    """Async client for the generative-inference service.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        primary_model: Higher-capability model tried first
        fallback_model: Model used once when the primary is overloaded
        safety_model: Model used for the pre-flight safety scan
        embedding_model: Model used to embed memory content
        embedding_fallback_model: Optional fallback for embeddings
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(
        self,
        host: str,
        primary_model: str,
        fallback_model: str,
        embedding_model: str,
        safety_model: str | None = None,
        embedding_fallback_model: str | None = None,
        api_key: str | None = None,
        temperature: float = 0.2,
        max_grounding_rounds: int = 2,
    ) -> None:
        """Initialize the inference client.

        Args:
            host: The Ollama server URL
            primary_model: Model tried first for agent turns and planning
            fallback_model: Model retried once on overload
            embedding_model: Embedding model
            safety_model: Model for safety scans (defaults to fallback_model)
            embedding_fallback_model: Optional embedding fallback model
            api_key: Ollama API key, required for hosted web search
            temperature: Sampling temperature for agent turns
            max_grounding_rounds: Web search round-trips allowed per turn
        """
        self.host = host
        self.primary_model = primary_model
        self.fallback_model = fallback_model
        self.safety_model = safety_model or fallback_model
        self.embedding_model = embedding_model
        self.embedding_fallback_model = embedding_fallback_model
        self.temperature = temperature
        self.max_grounding_rounds = max_grounding_rounds

        client_kwargs: dict[str, Any] = {}
        if api_key:
            client_kwargs["headers"] = {"Authorization": f"Bearer {api_key}"}
        self._client = ollama.AsyncClient(host=host, **client_kwargs)
        logger.info(f"InferenceClient initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def with_model_fallback(
        self,
        primary_model: str,
        fallback_model: str | None,
        operation: Callable[[str], Awaitable[T]],
        operation_name: str,
    ) -> T:
        """Run an operation on the primary model, retrying once on overload.

        Only InferenceOverloadedError triggers the retry. Any other error, and
        any error from the fallback attempt, propagates unchanged.

        Args:
            primary_model: Model tried first
            fallback_model: Model tried once if the primary is overloaded
            operation: Coroutine factory taking the model name
            operation_name: Label for log messages

        Returns:
            The operation's result
        """
        try:
            return await operation(primary_model)
        except InferenceOverloadedError as e:
            if fallback_model and fallback_model != primary_model:
                logger.warning(
                    f"[{operation_name}] Primary model {primary_model} overloaded ({e}). "
                    f"Falling back to {fallback_model}."
                )
                return await operation(fallback_model)
            raise

    async def chat_stream(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        options: dict[str, Any] | None = None,
        format: dict[str, Any] | None = None,
    ) -> AsyncIterator[dict[str, Any]]:
        """Stream chat responses from Ollama.

        Args:
            model: The model name to use for the chat
            messages: List of message dicts in Ollama format
            tools: Optional function tool declarations
            options: Optional model parameters (temperature, etc.)
            format: Optional JSON schema for structured output

        Yields:
            dict: Response chunks from Ollama

        Raises:
            InferenceOverloadedError: If Ollama reports overload or rate limiting
            InferenceError: If the model fails or the server is unreachable
        """
        logger.debug(f"Starting chat stream with model: {model}")
        logger.debug(f"Message count: {len(messages)}")

        try:
            async for chunk in await self._client.chat(
                model=model,
                messages=messages,
                tools=tools or None,
                stream=True,
                options=options,
                format=format,
            ):
                if hasattr(chunk, "model_dump"):
                    chunk_dict = chunk.model_dump()
                elif isinstance(chunk, dict):
                    chunk_dict = chunk
                else:
                    chunk_dict = vars(chunk)

                yield chunk_dict
        except (ollama.ResponseError, ConnectionError) as e:
            raise to_inference_error(e, model, "Model") from e

        logger.debug("Chat stream completed")

    async def _collect(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        format: dict[str, Any] | None = None,
    ) -> GenerationResult:
        """Collect a complete response (text and tool calls) from the stream."""
        content_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        async for chunk in self.chat_stream(
            model=model,
            messages=messages,
            tools=tools,
            options={"temperature": self.temperature},
            format=format,
        ):
            message = chunk.get("message") or {}
            content = message.get("content") or ""
            if content:
                content_parts.append(content)
            for raw_call in message.get("tool_calls") or []:
                tool_calls.append(ToolCall.from_ollama(raw_call))

        return GenerationResult(
            text="".join(content_parts),
            tool_calls=tool_calls,
            model=model,
        )

    async def _web_search(self, query: str) -> tuple[list[GroundingCitation], str]:
        """Run a hosted web search and format results for the model."""
        try:
            response = await self._client.web_search(query=query, max_results=3)
        except Exception as e:
            logger.warning(f"Web search failed for query {query!r}: {e}")
            return [], f"Web search failed: {e}"

        citations: list[GroundingCitation] = []
        lines: list[str] = []
        for item in _get_value(response, "results", []) or []:
            title = _get_value(item, "title", "") or ""
            url = _get_value(item, "url", "") or ""
            content = _get_value(item, "content", "") or ""
            if url:
                citations.append(GroundingCitation(title=title or url, uri=url))
            lines.append(f"{title} ({url})\n{content}")

        return citations, "\n\n".join(lines) or "No web results."

    async def generate(
        self,
        role: str,
        history: list[dict[str, Any]],
        tools: list[dict[str, Any]],
        enable_grounding: bool = False,
    ) -> GenerationResult:
        """Run one agent turn.

        When grounding is enabled the model is offered a ``web_search``
        function. Those calls are resolved here against the hosted search API
        and reported as citations; they are never returned as tool calls.

        Args:
            role: Calling agent role (for log labels)
            history: Conversation so far in Ollama message format
            tools: Function declarations the role may call
            enable_grounding: Whether live web search is allowed

        Returns:
            GenerationResult: Text, remaining tool calls and citations
        """
        messages = list(history)
        declarations = list(tools)
        if enable_grounding:
            declarations.append(WEB_SEARCH_TOOL)

        citations: list[GroundingCitation] = []
        rounds = 0

        while True:
            result = await self.with_model_fallback(
                self.primary_model,
                self.fallback_model,
                lambda model: self._collect(model, messages, declarations),
                f"AgentStep({role})",
            )

            search_calls = [c for c in result.tool_calls if c.name == WEB_SEARCH]
            if (
                not enable_grounding
                or not search_calls
                or rounds >= self.max_grounding_rounds
            ):
                break

            rounds += 1
            messages.append(
                {
                    "role": "assistant",
                    "content": result.text,
                    "tool_calls": [c.to_message() for c in search_calls],
                }
            )
            for call in search_calls:
                found, content = await self._web_search(
                    str(call.arguments.get("query", ""))
                )
                citations.extend(found)
                messages.append(
                    {"role": "tool", "tool_name": WEB_SEARCH, "content": content}
                )

        if enable_grounding:
            result.tool_calls = [c for c in result.tool_calls if c.name != WEB_SEARCH]
        result.citations = citations
        return result

    async def embed(self, text: str) -> list[float]:
        """Compute an embedding vector for a piece of text.

        Raises:
            InferenceError: If the service returns no embedding
        """

        async def operation(model: str) -> list[float]:
            try:
                response = await self._client.embed(model=model, input=text)
            except (ollama.ResponseError, ConnectionError) as e:
                raise to_inference_error(e, model, "Embedding model") from e

            embeddings = _get_value(response, "embeddings", []) or []
            if not embeddings:
                raise InferenceError(f"Embedding model {model} returned no vector")
            return [float(value) for value in embeddings[0]]

        return await self.with_model_fallback(
            self.embedding_model,
            self.embedding_fallback_model,
            operation,
            "Embed",
        )

    async def safety_scan(self, directive: str) -> SafetyVerdict:
        """Ask the safety model whether a directive may be executed.

        Raises:
            InferenceError: If the verdict cannot be parsed
        """
        messages = [
            {"role": "user", "content": SAFETY_PROMPT.format(directive=directive)}
        ]
        result = await self.with_model_fallback(
            self.safety_model,
            self.fallback_model,
            lambda model: self._collect(
                model, messages, format=SafetyVerdict.model_json_schema()
            ),
            "SafetyScan",
        )

        if not result.text.strip():
            raise InferenceError("Security scan failed: empty verdict")
        try:
            return SafetyVerdict.model_validate_json(result.text)
        except ValidationError as e:
            raise InferenceError(f"Security scan failed: {e}") from e

    async def generate_plan(self, request: str) -> list[PlannedTask]:
        """Break a user request into tasks for the kernel.

        Raises:
            InferenceError: If the plan is empty or malformed
        """
        messages = [
            {"role": "user", "content": PLANNER_PROMPT.format(request=request)}
        ]
        result = await self.with_model_fallback(
            self.primary_model,
            self.fallback_model,
            lambda model: self._collect(
                model, messages, format=TaskPlan.model_json_schema()
            ),
            "Planner",
        )

        if not result.text.strip():
            raise InferenceError("Empty plan generated")
        try:
            plan = TaskPlan.model_validate_json(result.text)
        except ValidationError as e:
            raise InferenceError(f"Malformed plan: {e}") from e

        logger.info(f"Planner produced {len(plan.tasks)} tasks")
        return plan.tasks

    async def close(self) -> None:
        """Close the client and clean up resources."""
        logger.debug("InferenceClient closed")
