from html import escape
from pathlib import Path

import structlog

from app.mcp.tools import DEFAULT_OUTPUT_PATH
from app.models.billing_models import AggregatedBillingData, BillingValues

log = structlog.get_logger()

REPORT_TITLE = "Aliyun Billing Report"
STYLESHEET_URL = "https://cdn.tailwindcss.com"

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <script src="{stylesheet}"></script>
</head>
<body class="bg-gray-100 p-8">
    <div class="container mx-auto bg-white p-6 rounded shadow-lg">
        <h1 class="text-2xl font-bold mb-4">{title}</h1>
        <table class="w-full table-auto border-collapse border border-gray-300">
            <thead>
                <tr class="bg-gray-200">
                    <th class="p-2 border-r">Date</th>
                    <th class="p-2 border-r">Product Code</th>
                    <th class="p-2 text-right border-r">Original Amount</th>
                    <th class="p-2 text-right border-r">Discount</th>
                    <th class="p-2 text-right">Actual Amount</th>
                </tr>
            </thead>
            <tbody>
{rows}
            </tbody>
        </table>
    </div>
</body>
</html>
"""

_PRODUCT_ROW = """                <tr class="border-b hover:bg-gray-50">
                    <td class="p-2 border-r align-top">{date}</td>
                    <td class="p-2 border-r align-top">{product}</td>
{amounts}
                </tr>"""

_TOTAL_ROW = """                <tr class="{css}">
                    <td class="p-2 border-r text-right" colspan="2">{label}</td>
{amounts}
                </tr>"""


def _amount_cells(values: BillingValues) -> str:
    return "\n".join(
        f'                    <td class="p-2 text-right align-top">{amount:.4f}</td>'
        for amount in (values.original, values.discount, values.actual)
    )


def render_billing_report(data: AggregatedBillingData) -> str:
    """
    Render aggregated billing data as a standalone HTML page.

    Dates and, within a date, product codes are sorted ascending. The date
    label appears on the first product row only; every date ends with a
    subtotal row and the table ends with an overall total.
    """
    rows: list[str] = []
    overall = BillingValues()

    for billing_date in sorted(data):
        products = data[billing_date]
        date_total = BillingValues()
        for index, product_code in enumerate(sorted(products)):
            values = products[product_code]
            date_total.original += values.original
            date_total.discount += values.discount
            date_total.actual += values.actual
            rows.append(_PRODUCT_ROW.format(
                date=escape(billing_date) if index == 0 else "",
                product=escape(product_code),
                amounts=_amount_cells(values),
            ))

        rows.append(_TOTAL_ROW.format(
            css="bg-gray-100 font-semibold",
            label=f"Total for {escape(billing_date)}:",
            amounts=_amount_cells(date_total),
        ))
        overall.original += date_total.original
        overall.discount += date_total.discount
        overall.actual += date_total.actual

    rows.append(_TOTAL_ROW.format(
        css="bg-gray-200 font-bold text-lg",
        label="Overall Total:",
        amounts=_amount_cells(overall),
    ))

    return _PAGE.format(title=REPORT_TITLE, stylesheet=STYLESHEET_URL, rows="\n".join(rows))


def resolve_output_path(output_path: str, base_dir: Path) -> Path:
    """
    Place output_path under base_dir. Absolute paths are re-rooted at base_dir;
    anything resolving outside it falls back to the default report path.
    """
    base = Path(base_dir).resolve()
    relative = Path(output_path)
    if relative.anchor:
        relative = relative.relative_to(relative.anchor)

    target = (base / relative).resolve()
    if not target.is_relative_to(base):
        log.warning("report_path_outside_export_dir", output_path=output_path)
        target = (base / DEFAULT_OUTPUT_PATH).resolve()
    return target


def write_report(html: str, output_path: str, base_dir: Path) -> Path:
    target = resolve_output_path(output_path, base_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(html, encoding="utf-8")
    log.info("billing_report_written", path=str(target), bytes=len(html.encode("utf-8")))
    return target
