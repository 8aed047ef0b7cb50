import os

from bytes_model import format_count

APP_LABEL = "pqview"


def _fit(text: str, width: int) -> str:
    if width <= 0:
        return ""
    return text.ljust(width)[:width]


def tab_chips(active_tab: str, available_tabs) -> str:
    if len(available_tabs) <= 1:
        return ""
    chips = []
    for idx, tab in enumerate(available_tabs, start=1):
        label = f"{idx} {tab}"
        chips.append(f"[{label}]" if tab == active_tab else f" {label} ")
    return " ".join(chips)


def render_header(context, width):
    """
    context keys: title, offset, rows, columns, total, loading, error,
                  created_by, optimized, active_tab, available_tabs, summary
    """
    title = context.get("title") or ""
    if title and "://" not in title:
        title = os.path.basename(title) or title

    error = context.get("error")
    if error:
        return _fit(f" {APP_LABEL} | error: {error}", width)

    summary = context.get("summary")
    if summary is None:
        offset = context.get("offset", 0)
        rows = context.get("rows", 0)
        start = offset + 1 if rows > 0 else offset
        end = offset + rows if rows > 0 else offset
        total = context.get("total")
        total_text = f" of {format_count(total)}" if total is not None else ""
        summary = (
            f"rows {format_count(start)}-{format_count(end)}{total_text}"
            f" | cols {format_count(context.get('columns', 0))}"
        )

    parts = [f" {APP_LABEL}", title, summary]
    if context.get("created_by"):
        parts.append(context["created_by"])
    left = " | ".join(parts)

    right = []
    chips = tab_chips(context.get("active_tab", "table"), context.get("available_tabs", ("table",)))
    if chips:
        right.append(chips)
    if context.get("loading"):
        right.append("* loading")
    if context.get("optimized"):
        right.append("OPTIMIZED")
    right_text = "  ".join(right)

    if right_text and width > 0:
        room = width - len(right_text) - 1
        if room >= 1:
            return _fit(left, room) + " " + right_text
    return _fit(left, width)


def footer_hints(active_tab: str, has_error: bool, has_layout: bool) -> str:
    tab_hints = " | 1 table 2 layout 3 bytes | tab/[ ] switch" if has_layout else ""
    error_hints = " | e view error | y copy error" if has_error else ""
    if active_tab == "layout":
        return (
            "q exit | arrows/jk select rowgroup | pgup/pgdn jump | home/end | mouse wheel scroll"
            f" | J/K or shift+wheel scroll details{tab_hints}"
        )
    if active_tab == "bytes":
        return (
            "q exit | arrows/jk row | h/l column | t toggle totals | click segment for detail"
            f" | s/enter toggle panel{error_hints}{tab_hints}"
        )
    return (
        "q exit | arrows/jk scroll | pgup/pgdn page | h/l col jump | mouse wheel scroll"
        f" | click cell for detail | s/enter toggle panel{error_hints}{tab_hints}"
    )


def render_footer(context, width):
    """Returns ``(notice line, hints line)``; the notice line is blank without a notice."""
    notice = context.get("notice") or ""
    hints = footer_hints(
        context.get("active_tab", "table"),
        bool(context.get("error")),
        bool(context.get("has_layout")),
    )
    return _fit(f" {notice}" if notice else "", width), _fit(f" {hints}", width)


def info_row(label: str, value: str, width: int) -> str:
    """Label on the left, value flush right."""
    if width <= 0:
        return ""
    gap = width - len(label) - len(value)
    if gap < 1:
        return _fit(f"{label} {value}", width)
    return label + " " * gap + value


def range_text(byte_range) -> str:
    return (
        f"start {format_count(byte_range.start)}  bytes {format_count(byte_range.byte_count)}"
        f"  end {format_count(byte_range.end)}"
    )
