"""Worker that configures AI provider credentials via non-interactive onboarding."""

from typing import NamedTuple

from clawmgr.errors.exceptions import JobPreconditionError
from clawmgr.models.requests import AiAuthRequest
from clawmgr.process.runner import LogSink
from clawmgr.workers.base import JobWorker

MINIMAX_CN_BASE_URL = "https://api.minimaxi.com/anthropic"


class AiProvider(NamedTuple):
    auth_choice: str
    env_var: str


AI_PROVIDERS: dict[str, AiProvider] = {
    "anthropic": AiProvider("apiKey", "ANTHROPIC_API_KEY"),
    "openai": AiProvider("openai-api-key", "OPENAI_API_KEY"),
    "openrouter": AiProvider("openrouter-api-key", "OPENROUTER_API_KEY"),
    "ai-gateway": AiProvider("ai-gateway-api-key", "AI_GATEWAY_API_KEY"),
    "gemini": AiProvider("gemini-api-key", "GEMINI_API_KEY"),
    "zai": AiProvider("zai-api-key", "ZAI_API_KEY"),
    "moonshot": AiProvider("moonshot-api-key", "MOONSHOT_API_KEY"),
    "kimi-code": AiProvider("kimi-code-api-key", "KIMI_CODE_API_KEY"),
    "minimax": AiProvider("minimax-api", "MINIMAX_API_KEY"),
    "minimax-cn": AiProvider("minimax-api", "MINIMAX_API_KEY"),
    "minimax-lightning": AiProvider("minimax-api-lightning", "MINIMAX_API_KEY"),
    "venice": AiProvider("venice-api-key", "VENICE_API_KEY"),
    "synthetic": AiProvider("synthetic-api-key", "SYNTHETIC_API_KEY"),
    "opencode-zen": AiProvider("opencode-zen", "OPENCODE_ZEN_API_KEY"),
}


def onboard_args(auth_choice: str) -> list[str]:
    return [
        "onboard",
        "--non-interactive",
        "--accept-risk",
        "--flow",
        "manual",
        "--mode",
        "local",
        "--auth-choice",
        auth_choice,
        "--skip-channels",
        "--skip-skills",
        "--skip-health",
        "--skip-ui",
        "--skip-daemon",
    ]


class AiAuthWorker(JobWorker):
    kind = "ai_auth"
    label = "Configure AI Provider"
    failure_prefix = "AI configuration failed"
    invalidates_onboarding = True

    async def process(self, job_id: str, payload: dict, log: LogSink) -> dict:
        request = AiAuthRequest.model_validate(payload)
        log("Configuring AI credentials...")

        name = request.provider.strip().lower()
        provider = AI_PROVIDERS.get(name)
        if provider is None:
            log(f"Unsupported provider: {name}")
            raise JobPreconditionError("unsupported provider")

        api_key = request.api_key.strip()
        if not api_key:
            log("API key is empty.")
            raise JobPreconditionError("missing api key")

        settings = self.context.settings
        runner = self.context.runner
        # The key is passed only through the child's environment, never argv.
        await runner.run_with_logs(
            settings.cli_bin,
            onboard_args(provider.auth_choice),
            settings.ai_auth_timeout_ms,
            on_log=log,
            env={**runner.env, provider.env_var: api_key},
        )

        if name == "minimax-cn":
            log("Setting MiniMax China API base URL...")
            await runner.run_with_logs(
                settings.cli_bin,
                ["config", "set", "models.providers.minimax.baseUrl", MINIMAX_CN_BASE_URL],
                settings.ai_auth_timeout_ms,
                on_log=log,
            )
            log("Enabling MiniMax China auth header...")
            await runner.run_with_logs(
                settings.cli_bin,
                ["config", "set", "models.providers.minimax.authHeader", "true", "--json"],
                settings.ai_auth_timeout_ms,
                on_log=log,
            )

        log("AI credentials configured.")
        return {"provider": name}
