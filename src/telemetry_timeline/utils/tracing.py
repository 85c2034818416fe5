import logging
from typing import Any, MutableMapping, Optional, Tuple, Union

PIPELINE_LOGGER = "telemetry_timeline.pipeline"


class StageLoggerAdapter(logging.LoggerAdapter):
    """Attach pipeline fields to every record through ``extra``.

    Per-call ``extra`` values are merged on top of the adapter's fields.
    """

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def stage_logger(
    stage: str,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    **fields: Any,
) -> StageLoggerAdapter:
    base: Union[logging.Logger, logging.LoggerAdapter] = logger or logging.getLogger(PIPELINE_LOGGER)
    inherited = {}
    if isinstance(base, logging.LoggerAdapter):
        inherited = dict(base.extra or {})
        base = base.logger
    return StageLoggerAdapter(base, {**inherited, **fields, "stage": stage})
