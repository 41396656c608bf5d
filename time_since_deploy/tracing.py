"""OpenTelemetry tracing for ``--trace``.

Finished spans are buffered by ``JsonlSpanExporter`` and written once, as
JSON lines, when the run closes its ``Tracing``. Without a trace path the
core functions get a no-op tracer, so tracing never changes their behaviour.
"""
import json
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor, SpanExporter, SpanExportResult

from . import __version__
from .file_utils import atomic_append_jsonl
from .logging_utils import logger


ONAME = "time-since-deploy"


class JsonlSpanExporter(SpanExporter):
    """Collects finished spans from any thread; ``write`` appends them to ``path``."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._records: List[dict] = []
        self._lock = threading.Lock()

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        records = [json.loads(s.to_json(indent=None)) for s in spans]
        with self._lock:
            self._records.extend(records)
        return SpanExportResult.SUCCESS

    def write(self) -> int:
        """Raises OSError if the trace file cannot be written."""
        with self._lock:
            records, self._records = self._records, []
        written = atomic_append_jsonl(self.path, records)
        logger.info("trace_written", path=str(self.path), spans=written)
        return written

    def shutdown(self) -> None:
        pass


class Tracing:
    """Tracer for one run: recording into ``path`` when given, no-op otherwise."""

    def __init__(self, path: Optional[Path] = None):
        self.provider: Optional[TracerProvider] = None
        self.exporter: Optional[JsonlSpanExporter] = None
        if not path:
            self.tracer = trace.NoOpTracer()
            return

        resource = Resource.create({
            SERVICE_NAME: ONAME,
            "service.version": __version__,
        })
        self.provider = TracerProvider(resource=resource)
        self.exporter = JsonlSpanExporter(path)
        # Spans end in worker threads; export synchronously so nothing is lost on close.
        self.provider.add_span_processor(SimpleSpanProcessor(self.exporter))
        self.tracer = self.provider.get_tracer(ONAME, __version__)

    def close(self) -> int:
        """Shut the provider down and write buffered spans; returns the span count."""
        if self.provider is None:
            return 0
        self.provider.shutdown()
        return self.exporter.write()


def default_tracer(tracer: Optional[trace.Tracer]) -> trace.Tracer:
    return tracer if tracer is not None else trace.NoOpTracer()
