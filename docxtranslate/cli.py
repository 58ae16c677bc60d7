# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import argparse
import asyncio
import json
import os
import signal
import sys
from pathlib import Path

from docxtranslate.agents.agent import Agent, AgentConfig
from docxtranslate.errors import DocxFormatError, MalformedMarkupError, MarkupError, TranslationCancelledError
from docxtranslate.logger import console_handler, global_logger
from docxtranslate.translator import default_params
from docxtranslate.translator.cancellation import CallRegistry, CancellationToken
from docxtranslate.utils.dotenv import load_env_file
from docxtranslate.utils.i18n import t
from docxtranslate.workflow.docx_workflow import DocxWorkflow, DocxWorkflowConfig, TranslateDocxResult

# Exit codes for orchestration environments
EC_OK = 0
EC_INVALID_INPUT = 10
EC_LLM_ERROR = 30
EC_EXPORT_ERROR = 40
EC_CANCELLED = 130


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docxtranslate",
        description="Translate a Word document (.docx) while preserving all formatting",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog=(
            "Example:\n"
            "  docxtranslate -i report.docx -o report.de.docx -l German "
            "--base-url https://api.openai.com/v1 --model-id gpt-4o"
        ),
    )
    parser.add_argument("-i", "--input", required=True, help="Source .docx file")
    parser.add_argument("-o", "--output", required=True, help="Output .docx file")
    parser.add_argument("-l", "--lang", required=True, help="Target language, e.g. German")
    parser.add_argument("--source-lang", help="Source language (auto-detected if omitted)")
    parser.add_argument("--concurrency", type=int, default=default_params["concurrent"],
                        help="Max parallel translation requests")
    parser.add_argument("--batch-size", type=int, default=default_params["batch_size"],
                        help="Paragraphs per translation request")
    parser.add_argument("--max-retries", type=int, default=default_params["max_retries"],
                        help="Resend attempts for paragraphs missing from a response")

    parser.add_argument("--base-url", help="LLM API base URL; defaults to OPENAI_BASE_URL")
    parser.add_argument("--api-key", help="LLM API key; defaults to OPENAI_API_KEY")
    parser.add_argument("--model-id", help="Model ID; defaults to OPENAI_MODEL")
    parser.add_argument("--temperature", type=float, default=default_params["temperature"], help="Temperature")
    parser.add_argument("--timeout", type=int, default=default_params["timeout"], help="Timeout (seconds)")
    parser.add_argument("--thinking", choices=["default", "enable", "disable"], default=default_params["thinking"],
                        help="Thinking mode (provider-specific)")
    parser.add_argument("--system-proxy", action="store_true", help="Honour proxy settings from the environment")

    parser.add_argument("--env-file", default=None, help="Load environment variables from file (default: ./.env)")
    parser.add_argument("--no-env", action="store_true", help="Do not auto-load .env from current directory")
    parser.add_argument("--msg-lang", choices=["en", "zh"], default=os.getenv("DOCXTRANSLATE_LANG", "en"),
                        help="Language for CLI messages")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only print errors and the JSON result")
    return parser


def _agent_config(args: argparse.Namespace) -> AgentConfig:
    base_url = args.base_url or os.getenv("OPENAI_BASE_URL") or os.getenv("BASE_URL")
    api_key = args.api_key or os.getenv("OPENAI_API_KEY") or os.getenv("API_KEY")
    model_id = args.model_id or os.getenv("OPENAI_MODEL")
    missing = [name for name, value in (("--base-url", base_url), ("--model-id", model_id)) if not value]
    if missing:
        print(t("missing_model_config", lang=args.msg_lang, missing=", ".join(missing)), file=sys.stderr)
        raise SystemExit(EC_INVALID_INPUT)
    return AgentConfig(
        base_url=base_url,
        api_key=api_key,
        model_id=model_id,
        temperature=args.temperature,
        concurrent=args.concurrency,
        timeout=args.timeout,
        thinking=args.thinking,
        system_proxy_enable=args.system_proxy,
    )


async def _run(workflow: DocxWorkflow, agent_config: AgentConfig, lang: str) -> TranslateDocxResult:
    cancel_token = CancellationToken()
    registry = CallRegistry()
    loop = asyncio.get_running_loop()

    def on_signal():
        print(t("signal_received", lang=lang), file=sys.stderr)
        cancel_token.cancel()
        registry.cancel_all()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal)
        except NotImplementedError:
            # Windows event loops have no signal handlers; Ctrl+C raises KeyboardInterrupt instead
            global_logger.debug(f"Signal handler for {sig!r} not supported on this platform")

    async with Agent(agent_config) as agent:
        return await workflow.translate_async(agent.complete_async, cancel_token, registry)


def main(argv: list[str] | None = None):
    args = _build_parser().parse_args(argv)
    lang = args.msg_lang

    if args.quiet:
        console_handler.setLevel("ERROR")

    if not args.no_env:
        env_path_used, loaded_keys = load_env_file(args.env_file)
        if env_path_used:
            global_logger.info(t("env_loaded", lang=lang, count=len(loaded_keys), path=env_path_used))

    input_path = Path(args.input)
    if not input_path.is_file():
        print(t("file_not_found", lang=lang, path=str(input_path)), file=sys.stderr)
        raise SystemExit(EC_INVALID_INPUT)

    agent_config = _agent_config(args)

    def on_progress(message: str):
        if not args.quiet:
            print(message, file=sys.stderr)

    workflow = DocxWorkflow(DocxWorkflowConfig(
        input_path=input_path,
        output_path=Path(args.output),
        target_language=args.lang,
        source_language=args.source_lang,
        concurrency=args.concurrency,
        batch_size=args.batch_size,
        max_retries=args.max_retries,
        on_progress=on_progress,
    ))

    try:
        result = asyncio.run(_run(workflow, agent_config, lang))
    except TranslationCancelledError:
        print(t("cancelled", lang=lang), file=sys.stderr)
        raise SystemExit(EC_CANCELLED)
    except KeyboardInterrupt:
        print(t("cancelled", lang=lang), file=sys.stderr)
        raise SystemExit(EC_CANCELLED)
    except MalformedMarkupError as e:
        print(t("malformed_output", lang=lang, error=str(e)), file=sys.stderr)
        raise SystemExit(EC_EXPORT_ERROR)
    except (DocxFormatError, MarkupError, FileNotFoundError) as e:
        print(t("invalid_docx", lang=lang, error=str(e)), file=sys.stderr)
        raise SystemExit(EC_INVALID_INPUT)
    except OSError as e:
        print(t("write_failed", lang=lang, error=str(e)), file=sys.stderr)
        raise SystemExit(EC_EXPORT_ERROR)
    except Exception as e:
        print(t("translation_failed", lang=lang, error=str(e)), file=sys.stderr)
        raise SystemExit(EC_LLM_ERROR)

    # Output result as JSON on stdout for machine consumption
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return EC_OK


if __name__ == "__main__":
    main()
