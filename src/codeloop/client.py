# codeloop: Minimal HTTP client for the OpenAI Responses API that implements the generate_with_tools contract: one POST per call, output normalized into a ModelTurn. No retries; failures raise ModelInvocationError and abort the session.

import json
from typing import Any, Dict, List, Optional

import requests

from .config import AI_MODEL, HTTP_TIMEOUT_SEC, MAX_COMPLETION_TOKENS, OPENAI_API_KEY, OPENAI_BASE_URL
from .context import Context, quiet_context
from .errors import CodeloopError, ModelInvocationError
from .models import ModelTurn, TextReply, TokenUsage, ToolCall, ToolCallsReply


def _as_int(v: Any) -> int:
    try:
        return int(v) if v is not None else 0
    except (TypeError, ValueError):
        return 0


def parse_usage(resp_obj: Dict[str, Any]) -> TokenUsage:
    """Read token counts, preferring Responses field names and falling back to Chat Completions aliases."""
    usage = resp_obj.get("usage") or {}
    input_tokens = usage.get("input_tokens")
    if input_tokens is None:
        input_tokens = usage.get("prompt_tokens")
    output_tokens = usage.get("output_tokens")
    if output_tokens is None:
        output_tokens = usage.get("completion_tokens")
    return TokenUsage(input_tokens=_as_int(input_tokens), output_tokens=_as_int(output_tokens))


def _decode_arguments(raw: Any) -> Any:
    if isinstance(raw, str):
        try:
            return json.loads(raw) if raw.strip() else {}
        except ValueError:
            # Leave undecodable arguments to the dispatcher, which reports them back to the model.
            return {}
    return raw if raw is not None else {}


def normalize_response(resp_obj: Dict[str, Any]) -> ModelTurn:
    """
    Normalize a Responses API result into a ModelTurn.

    The output list is heterogeneous: message items carry text (stitched
    together in order) and function_call items become ToolCalls.
    """
    content_chunks: List[str] = []
    calls: List[ToolCall] = []

    output = resp_obj.get("output")
    if isinstance(output, list):
        for o in output:
            if not isinstance(o, dict):
                continue
            otype = o.get("type")
            if otype == "message":
                ct = o.get("content")
                if isinstance(ct, str):
                    content_chunks.append(ct)
                elif isinstance(ct, list):
                    for item in ct:
                        if isinstance(item, str):
                            content_chunks.append(item)
                        elif isinstance(item, dict) and item.get("type", "") == "output_text":
                            content_chunks.append(item.get("text", "") or "")
            elif otype == "function_call":
                call_id = o.get("call_id") or o.get("id") or f"call_{len(calls) + 1}"
                calls.append(ToolCall(id=str(call_id), name=str(o.get("name") or ""), arguments=_decode_arguments(o.get("arguments"))))

    content = "\n".join(c for c in content_chunks if c)
    if calls:
        message = ToolCallsReply(calls=calls, content=content)
        finish_reason = "tool_calls"
    else:
        message = TextReply(content=content)
        finish_reason = "length" if resp_obj.get("status") == "incomplete" else "stop"

    return ModelTurn(
        message=message,
        usage=parse_usage(resp_obj),
        model=str(resp_obj.get("model") or ""),
        finish_reason=finish_reason,
    )


class ResponsesClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        settings: Optional[Dict[str, Any]] = None,
        ctx: Optional[Context] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the client.

        Value precedence (highest first): constructor args, settings['api']
        (api_key, model, base_url), then environment (OPENAI_API_KEY, AI_MODEL,
        OPENAI_BASE_URL). The base URL is normalized to end with /v1.
        """
        api_cfg = (settings or {}).get("api") if isinstance(settings, dict) else None
        api_cfg = api_cfg if isinstance(api_cfg, dict) else {}

        resolved_api_key = api_key or api_cfg.get("api_key") or OPENAI_API_KEY
        resolved_model = model or api_cfg.get("model") or AI_MODEL
        resolved_base_url = str(base_url or api_cfg.get("base_url") or OPENAI_BASE_URL).rstrip("/")
        if not resolved_base_url.endswith("/v1"):
            resolved_base_url = f"{resolved_base_url}/v1"
        if not resolved_api_key:
            raise CodeloopError("No API key provided (OPENAI_API_KEY or settings.api.api_key or api_key arg).")

        self.api_key = resolved_api_key
        self.model = resolved_model
        self.base_url = resolved_base_url
        self.ctx = ctx or quiet_context()
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            }
        )

    def responses_url(self) -> str:
        return f"{self.base_url}/responses"

    def generate_with_tools(self, messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> ModelTurn:
        """
        Make one Responses API call with function-calling enabled.

        Raises:
            ModelInvocationError: on transport failure, non-200 status, or a
                body that is not a JSON object.
        """
        payload = {
            "model": self.model,
            "input": messages,
            "tools": tools,
            "tool_choice": "auto",
            "max_output_tokens": MAX_COMPLETION_TOKENS,
        }
        self.ctx.log(f"Calling POST {self.responses_url()} (tools={len(tools)}, items={len(messages)})")
        try:
            r = self.session.post(self.responses_url(), json=payload, timeout=HTTP_TIMEOUT_SEC)
        except requests.RequestException as e:
            raise ModelInvocationError(f"Responses API request failed: {e}") from e
        if r.status_code != 200:
            raise ModelInvocationError(f"Responses API error {r.status_code}: {r.text[:2000]}")
        try:
            resp = r.json()
        except ValueError as e:
            raise ModelInvocationError(f"Responses API returned a non-JSON body: {r.text[:500]}") from e
        if not isinstance(resp, dict):
            raise ModelInvocationError("Responses API returned an unexpected payload shape")

        turn = normalize_response(resp)
        if not turn.model:
            turn = turn.model_copy(update={"model": self.model})
        self.ctx.log(
            f"OpenAI usage: input_tokens={turn.usage.input_tokens}, output_tokens={turn.usage.output_tokens}, "
            f"tool_calls={len(getattr(turn.message, 'calls', []))}"
        )
        return turn
