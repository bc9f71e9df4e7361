"""Export helpers for the schedule report (CSV) and the timeline (PDF)."""
from __future__ import annotations

import csv
from datetime import date
from pathlib import Path
from typing import AbstractSet, Hashable, Iterable, List, Optional, Tuple

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import (
    QBrush,
    QColor,
    QFont,
    QPageLayout,
    QPageSize,
    QPainter,
    QPainterPath,
    QPdfWriter,
    QPen,
    QPolygonF,
)

from .connectors import DEFAULT_ROW_HEIGHT, route_connectors
from .graph import build_graph, detect_cycles
from .layout import RowLayout, layout_rows
from .logging_utils import get_logger
from .models import Task, ZoomMode
from .schedule import DEFAULT_NOMINAL_DAYS, CriticalPathResult, compute_critical_path
from .timeline import Projection, bar_extent, compute_range, daily_load, projection

logger = get_logger(__name__)

CSV_HEADERS = [
    "ID",
    "Task",
    "Category",
    "Start",
    "End",
    "Duration",
    "ES",
    "EF",
    "LS",
    "LF",
    "Float",
    "Critical",
]
CSV_CRITICAL_MARKER = "X"
CSV_CYCLE_MARKER = "cycle"

PDF_TASK_MIN_WIDTH = 160
PDF_TASK_MAX_WIDTH_RATIO = 0.3  # fraction of available width
PDF_TASK_PADDING = 48
PDF_PAGE_MARGIN_RATIO = 0.04
PDF_HEADER_HEIGHT = 40
PDF_FOOTER_HEIGHT = 40
PDF_ROW_HEIGHT_MIN = 24
PDF_ROW_HEIGHT_MAX = 48
PDF_BAR_INSET_RATIO = 0.2
PDF_FONT_SIZE = 10
PDF_ROW_TEXT_BOTTOM_PADDING = 4
PDF_TASK_COLOR = QColor("#1976d2")
PDF_CRITICAL_COLOR = QColor("#d32f2f")
PDF_BLOCKED_COLOR = QColor("#9e9e9e")
PDF_GROUP_COLOR = QColor("#eceff1")
PDF_HEADER_COLOR = QColor("#e8eaf6")
PDF_CONNECTOR_COLOR = QColor("#455a64")
PDF_TODAY_COLOR = QColor("#ff6f00")


def export_schedule_csv(
    path: Path | str,
    tasks: Iterable[Task],
    *,
    nominal_days: int = DEFAULT_NOMINAL_DAYS,
) -> None:
    """Write the computed schedule, one row per task in input order."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    task_list = list(tasks)
    result = compute_critical_path(task_list, nominal_days=nominal_days)
    blocked = set(result.unscheduled)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADERS)
        for task in task_list:
            row = [
                task.id,
                task.title,
                task.group,
                _serialize_optional_date(task.start_date),
                _serialize_optional_date(task.end_date),
            ]
            entry = result.schedule.get(task.id)
            if entry is None:
                marker = CSV_CYCLE_MARKER if task.id in blocked else ""
                row.extend(["", "", "", "", "", "", marker])
            else:
                row.extend([
                    entry.duration,
                    entry.earliest_start,
                    entry.earliest_finish,
                    entry.latest_start,
                    entry.latest_finish,
                    entry.total_float,
                    CSV_CRITICAL_MARKER if entry.is_critical else "",
                ])
            writer.writerow(row)
    logger.info("Exported schedule CSV to %s", csv_path)


def export_timeline_pdf(
    path: Path | str,
    tasks: Iterable[Task],
    *,
    zoom: ZoomMode | str = ZoomMode.WEEK,
    expanded_groups: Optional[AbstractSet[str]] = None,
    today: Optional[date] = None,
) -> None:
    """Render the grouped timeline with bars, connectors and the today marker."""
    pdf_path = Path(path)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)

    task_list = list(tasks)
    if expanded_groups is None:
        expanded_groups = {task.group for task in task_list}

    writer = QPdfWriter(str(pdf_path))
    writer.setPageSize(QPageSize(QPageSize.PageSizeId.A4))
    writer.setPageOrientation(QPageLayout.Orientation.Landscape)
    writer.setResolution(300)

    painter = QPainter(writer)
    _draw_pdf_timeline(painter, writer, task_list, ZoomMode(zoom), expanded_groups, today)
    painter.end()
    logger.info("Exported timeline PDF to %s", pdf_path)


class _PageTransform:
    """Scales engine geometry (projection pixels, engine rows) onto the page."""

    def __init__(self, origin_x: float, origin_y: float, scale_x: float, scale_y: float) -> None:
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.scale_x = scale_x
        self.scale_y = scale_y

    def x(self, value: float) -> float:
        return self.origin_x + value * self.scale_x

    def y(self, value: float) -> float:
        return self.origin_y + value * self.scale_y

    def point(self, point: Tuple[float, float]) -> QPointF:
        return QPointF(self.x(point[0]), self.y(point[1]))


def _compute_name_width(font_metrics, content_rect, tasks: List[Task]) -> int:
    """Figure out how wide the task title column should be."""
    labels = [task.title for task in tasks] + [task.group for task in tasks]
    longest = max((font_metrics.horizontalAdvance(label) for label in labels), default=0)
    proportional_cap = int(content_rect.width() * PDF_TASK_MAX_WIDTH_RATIO)
    return max(PDF_TASK_MIN_WIDTH, min(longest + PDF_TASK_PADDING, proportional_cap))


def _compute_row_height(content_rect, total_rows: int) -> int:
    """Compute a bounded row height so all rows fit on the page."""
    rows = max(1, total_rows)
    available_height = max(PDF_ROW_HEIGHT_MIN, content_rect.height() - PDF_HEADER_HEIGHT - PDF_FOOTER_HEIGHT)
    return max(PDF_ROW_HEIGHT_MIN, min(PDF_ROW_HEIGHT_MAX, int(available_height / rows)))


def _draw_pdf_timeline(
    painter: QPainter,
    writer: QPdfWriter,
    tasks: List[Task],
    zoom: ZoomMode,
    expanded_groups: AbstractSet[str],
    today: Optional[date],
) -> None:
    page_rect = writer.pageLayout().paintRectPixels(writer.resolution())
    margin = int(page_rect.width() * PDF_PAGE_MARGIN_RATIO)
    content_rect = page_rect.adjusted(margin, margin, -margin, -margin)

    painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
    font = QFont(painter.font())
    font.setPointSize(PDF_FONT_SIZE)
    painter.setFont(font)
    pen = QPen(QColor("#333333"))
    pen.setWidth(1)
    painter.setPen(pen)
    font_metrics = painter.fontMetrics()

    graph = build_graph(tasks)
    result = compute_critical_path(tasks, graph=graph)
    proj = projection(compute_range(tasks, today=today), zoom)
    layout = layout_rows(tasks, expanded_groups)

    name_width = _compute_name_width(font_metrics, content_rect, tasks)
    timeline_width = max(1, content_rect.width() - name_width)
    row_height = _compute_row_height(content_rect, layout.total_rows)
    header_y = content_rect.top()
    rows_top = header_y + PDF_HEADER_HEIGHT
    transform = _PageTransform(
        origin_x=content_rect.left() + name_width,
        origin_y=rows_top,
        scale_x=timeline_width / max(1, proj.total_width),
        scale_y=row_height / DEFAULT_ROW_HEIGHT,
    )

    _draw_header(painter, font_metrics, proj, transform, content_rect.left(), header_y, name_width)
    _draw_rows(painter, tasks, layout, result, proj, transform, content_rect.left(), name_width, row_height)

    connectors = route_connectors(graph, tasks, layout, proj)
    for connector in connectors:
        connector_pen = QPen(PDF_CONNECTOR_COLOR)
        connector_pen.setWidth(2)
        if not connector.satisfied:
            connector_pen.setStyle(Qt.PenStyle.DashLine)
        painter.setPen(connector_pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        first, second = connector.control_points
        curve = QPainterPath(transform.point(connector.start))
        curve.cubicTo(transform.point(first), transform.point(second), transform.point(connector.end))
        painter.drawPath(curve)
    painter.setPen(pen)

    rows_bottom = rows_top + max(1, layout.total_rows) * row_height
    today_x = proj.today_x(today)
    if today_x is not None:
        today_pen = QPen(PDF_TODAY_COLOR)
        today_pen.setWidth(3)
        painter.setPen(today_pen)
        painter.drawLine(QPointF(transform.x(today_x), header_y), QPointF(transform.x(today_x), rows_bottom))
        painter.setPen(pen)

    if not tasks:
        rect = QRectF(content_rect.left(), rows_top, content_rect.width(), row_height)
        painter.drawRect(rect)
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, "No tasks defined")

    footer = QRectF(content_rect.left(), rows_bottom, content_rect.width(), PDF_FOOTER_HEIGHT)
    painter.drawText(footer, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, _footer_text(tasks, graph, result, proj))


def _draw_header(painter: QPainter, font_metrics, proj: Projection, transform: _PageTransform, left: float, top: float, name_width: int) -> None:
    rect = QRectF(left, top, name_width, PDF_HEADER_HEIGHT)
    painter.fillRect(rect, PDF_GROUP_COLOR)
    painter.drawRect(rect)
    painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, "Task")

    for segment in proj.header_segments:
        rect = QRectF(transform.x(segment.x), top, segment.width * transform.scale_x, PDF_HEADER_HEIGHT)
        painter.fillRect(rect, PDF_HEADER_COLOR)
        painter.drawRect(rect)
        # Narrow cells (partial weeks, quarter zoom days) stay unlabeled.
        if font_metrics.horizontalAdvance(segment.label) < rect.width():
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, segment.label)


def _draw_rows(
    painter: QPainter,
    tasks: List[Task],
    layout: RowLayout,
    result: CriticalPathResult,
    proj: Projection,
    transform: _PageTransform,
    left: float,
    name_width: int,
    row_height: int,
) -> None:
    timeline_width = proj.total_width * transform.scale_x
    for group in layout.group_order:
        row = layout.header_row_by_group[group]
        y = transform.origin_y + row * row_height
        rect = QRectF(left, y, name_width + timeline_width, row_height)
        painter.fillRect(rect, PDF_GROUP_COLOR)
        painter.drawRect(rect)
        marker = "-" if _has_visible_member(tasks, layout, group) else "+"
        text_rect = QRectF(left + 6, y, name_width - 12, row_height - PDF_ROW_TEXT_BOTTOM_PADDING)
        painter.drawText(text_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, f"{marker} {group}")

    blocked = set(result.unscheduled)
    drawn: set[Hashable] = set()
    for task in tasks:
        row = layout.row_index_by_task_id.get(task.id)
        if row is None or task.id in drawn:
            continue
        drawn.add(task.id)
        y = transform.origin_y + row * row_height
        name_rect = QRectF(left, y, name_width, row_height)
        painter.drawRect(name_rect)
        text_rect = name_rect.adjusted(18, 0, -6, -PDF_ROW_TEXT_BOTTOM_PADDING)
        painter.drawText(text_rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, task.title)
        painter.drawRect(QRectF(transform.origin_x, y, timeline_width, row_height))

        extent = bar_extent(task, proj)
        if extent is None:
            continue
        if task.id in blocked:
            color = PDF_BLOCKED_COLOR
        elif result.is_critical(task.id):
            color = PDF_CRITICAL_COLOR
        else:
            color = PDF_TASK_COLOR
        inset = row_height * PDF_BAR_INSET_RATIO
        bar_left = transform.x(extent[0])
        bar_right = transform.x(extent[1])
        if task.is_milestone:
            center_y = y + row_height / 2
            half = row_height / 2 - inset
            diamond = QPolygonF([
                QPointF(bar_left, center_y - half),
                QPointF(bar_left + half, center_y),
                QPointF(bar_left, center_y + half),
                QPointF(bar_left - half, center_y),
            ])
            painter.setBrush(QBrush(color))
            painter.drawPolygon(diamond)
            painter.setBrush(Qt.BrushStyle.NoBrush)
        else:
            bar_rect = QRectF(bar_left, y + inset, max(1.0, bar_right - bar_left), row_height - 2 * inset)
            painter.fillRect(bar_rect, color)


def _has_visible_member(tasks: List[Task], layout: RowLayout, group: str) -> bool:
    return any(task.group == group and layout.is_visible(task.id) for task in tasks)


def _footer_text(tasks: List[Task], graph, result: CriticalPathResult, proj: Projection) -> str:
    titles = {task.id: task.title or str(task.id) for task in tasks}
    parts = []
    if result.path:
        chain = " > ".join(titles.get(task_id, str(task_id)) for task_id in result.path)
        parts.append(f"Critical path: {chain} ({result.project_duration} days)")
    load = daily_load(tasks, proj.range)
    parts.append(f"Peak load: {max(load, default=0)} tasks/day")
    cycles = detect_cycles(graph)
    if cycles:
        parts.append(f"Dependency cycles: {len(cycles)}")
    return "   |   ".join(parts)


def _serialize_optional_date(value) -> str:
    return "" if value is None else value.isoformat()
