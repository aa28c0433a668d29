"""The ``/tracez`` page: a read-only view over the span store."""

from __future__ import annotations

from html import escape
from typing import List, Optional

from fastapi import FastAPI, Query
from fastapi.responses import HTMLResponse

from tabletrace.processors.span_store import SampledSpanStore, StoreSnapshot
from tabletrace.tracer.span import Span
from tabletrace.utils.helpers import format_timestamp_ns

TRACEZ_PATH = "/tracez"


def create_app(span_store: SampledSpanStore) -> FastAPI:
    """Build the diagnostics application. It serves exactly one route."""
    app = FastAPI(
        title="tabletrace diagnostics",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get(TRACEZ_PATH, response_class=HTMLResponse)
    def tracez(zspanname: Optional[str] = Query(default=None)) -> HTMLResponse:
        # snapshot() copies under the store lock; rendering happens outside it.
        return HTMLResponse(render_tracez(span_store.snapshot(), zspanname))

    return app


def render_tracez(snapshot: StoreSnapshot, span_name: Optional[str] = None) -> str:
    parts: List[str] = [
        "<!DOCTYPE html><html><head><title>TraceZ</title></head><body>",
        "<h1>TraceZ Summary</h1>",
        "<table border='1'><tr><th>Span name</th><th>Running</th>"
        "<th>Completed</th><th>Errors</th><th>Retained</th></tr>",
    ]
    for name in sorted(snapshot.summaries):
        summary = snapshot.summaries[name]
        link = f"<a href='{TRACEZ_PATH}?zspanname={escape(name, quote=True)}'>{escape(name)}</a>"
        parts.append(
            f"<tr><td>{link}</td><td>{summary.running}</td><td>{summary.completed}</td>"
            f"<td>{summary.errors}</td><td>{'yes' if summary.retained else 'no'}</td></tr>"
        )
    parts.append("</table>")

    if span_name:
        parts.append(f"<h2>Spans named {escape(span_name)}</h2>")
        spans = snapshot.spans_named(span_name)
    else:
        parts.append("<h2>Recent spans</h2>")
        spans = list(snapshot.running)
        for bucket in snapshot.retained.values():
            spans.extend(bucket)
        spans.extend(snapshot.recent)
        spans.sort(key=lambda s: s.start_time_ns, reverse=True)

    if not spans:
        parts.append("<p>No spans recorded.</p>")
    for span in spans:
        parts.append(_render_span(span))

    parts.append("</body></html>")
    return "\n".join(parts)


def _render_span(span: Span) -> str:
    state = "running" if span.end_time_ns is None else span.status.name
    duration = "-" if span.duration_ns is None else f"{span.duration_ns / 1e6:.3f} ms"
    lines = [
        "<pre>",
        escape(
            f"{format_timestamp_ns(span.start_time_ns)}  {span.name}  [{state}]  {duration}  "
            f"trace_id={span.context.trace_id} span_id={span.context.span_id} "
            f"parent={span.parent_span_id or '-'} sampled={span.sampled}"
        ),
    ]
    for annotation in span.annotations:
        lines.append(escape(f"    {format_timestamp_ns(annotation.timestamp_ns)}  {annotation.message}"))
    lines.append("</pre>")
    return "\n".join(lines)
