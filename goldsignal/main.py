"""GoldSignal — application entry point.

Boots the FastAPI server and provides the CLI entry point for serving
the API or printing a single analysis.
"""

import logging

from fastapi import FastAPI

from goldsignal.api.routers import router

app = FastAPI(title="GoldSignal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("goldsignal")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio
    import json

    from goldsignal.api.routers import configure_routers
    from goldsignal.config import load_config
    from goldsignal.engine import VALID_INTERVALS, AnalysisEngine

    parser = argparse.ArgumentParser(description="GoldSignal XAU/USD analysis")
    parser.add_argument(
        "--mode",
        choices=["serve", "analyze"],
        default="serve",
        help="Run the API server or print one analysis (default: serve)",
    )
    parser.add_argument("--symbol", help="Symbol to analyse (default: DEFAULT_SYMBOL)")
    parser.add_argument(
        "--interval",
        choices=list(VALID_INTERVALS),
        default="1h",
        help="Candle interval (default: 1h)",
    )
    parser.add_argument("--env", help="Path to a .env file")
    args = parser.parse_args(argv)

    config = load_config(args.env)
    logging.basicConfig(
        level=config.log_level_value,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    engine = AnalysisEngine(config)

    if args.mode == "analyze":
        result = asyncio.run(engine.analyze(args.symbol, args.interval))
        print(json.dumps(result, indent=2, default=str))
        return

    import uvicorn

    configure_routers(engine=engine)
    logger.info("Starting GoldSignal API on %s:%d", config.host, config.port)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    _run_cli()
