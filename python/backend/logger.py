import sys

from loguru import logger

PALETTE = {
    "solver": "cyan",
    "layout": "blue",
    "backward": "magenta",
    "generator": "green",
}

# Minimum level per component on top of the sink level.
LEVEL_PER_COMPONENT = {
    "solver": "INFO",
}

_sink_id: int | None = None


def component_filter(record):
    comp = record["extra"].get("component", "")
    min_level = logger.level(LEVEL_PER_COMPONENT.get(comp, "DEBUG")).no
    return record["level"].no >= min_level


def formatter(record):
    comp = record["extra"].get("component", "")
    seed = record["extra"].get("seed", "")
    colour = PALETTE.get(comp, "white")

    if seed != "":
        return (
            "{time:HH:mm:ss} | "
            f"<{colour}>{comp:<10} | {str(seed):<12}</> | "
            "<level>{message}</level>\n"
        )
    return (
        "{time:HH:mm:ss} | "
        f"<{colour}>{comp:<10}</> | "
        "<level>{message}</level>\n"
    )


def configure(level: str = "WARNING") -> None:
    """(Re)install the single stderr sink at *level*."""
    global _sink_id
    if _sink_id is not None:
        logger.remove(_sink_id)
    _sink_id = logger.add(
        sys.stderr, level=level, format=formatter, filter=component_filter, colorize=True
    )


logger.remove()
configure()
