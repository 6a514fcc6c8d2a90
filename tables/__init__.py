"""Table generation and export for regular temperaments.

This module turns temperaments into rows of a summary table and writes them
as aligned text and as Excel workbooks.

Table Contents:
- Label, subgroup, rank and canonical wedgie of each temperament
- Rank prefix together with its recoverability flag
- Optimal (TE/CTE) mapping of the basis factors in the requested unit
- Period and generators, and optionally a factorization into vals

Excel Export Features:
- Header formatting and color-coded column groups
- One worksheet per export with the same headers as the text table

Error Handling and Fallbacks:
- Text export always runs, the workbook is skipped when openpyxl is unavailable
- Rows whose generator or factorization search fails keep an empty cell

Dependencies:
- openpyxl for Excel export functionality (optional)
- Integration with utils module for export helpers
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import consts
import utils

logger = logging.getLogger(__name__)

HEADERS = ["Label", "Subgroup", "Rank", "Wedgie", "Prefix", "Recoverable", "Mapping", "Period/Generators", "Vals"]

# Column groups for the Excel color fills
_COLUMN_FILLS = {4: 'wedgie', 5: 'wedgie', 7: 'mapping', 8: 'generator', 9: 'vals'}


def _format_numbers(values: Sequence[float], digits: int = 3) -> str:
    return "[" + ", ".join(f"{v:.{digits}f}" for v in values) + "]"


def _format_integers(values: Sequence[int]) -> str:
    return "[" + ", ".join(str(int(v)) for v in values) + "]"


def summarize_temperament(label: str, temperament, units: str = consts.DEFAULT_UNITS,
                          temper_equaves: bool = False, constraints: Optional[Sequence] = None,
                          factorize: bool = False, strategy: str = consts.DEFAULT_STRATEGY,
                          max_divisions: int = consts.DEFAULT_MAX_DIVISIONS) -> Dict[str, str]:
    """Summary row of a temperament keyed by the table headers."""
    canonical = temperament.canonized()
    rank = canonical.rank
    row = {
        "Label": label,
        "Subgroup": str(getattr(canonical, 'subgroup', '')),
        "Rank": str(rank),
        "Wedgie": str(canonical),
        "Prefix": _format_integers(canonical.rank_prefix(rank)) if rank else "",
        "Recoverable": "yes" if canonical.is_recoverable() else "no",
        "Mapping": _format_numbers(canonical.get_mapping(units, temper_equaves, constraints=constraints)),
        "Period/Generators": "",
        "Vals": "",
    }
    try:
        row["Period/Generators"] = _format_numbers(
            canonical.period_generator(units, temper_equaves, constraints=constraints))
    except ValueError as e:
        logger.info(f"No period/generators for {label}: {e}")
    if factorize:
        try:
            vals = canonical.val_factorize(strategy, max_divisions)
            row["Vals"] = " & ".join(_format_integers(v) for v in vals)
        except ValueError as e:
            logger.info(f"No val factorization for {label}: {e}")
    return row


def _compute_column_widths(rows: List[List[str]], headers: List[str]) -> List[int]:
    """Compute column widths for table formatting."""
    widths = [len(h) for h in headers]
    for row in rows:
        for col_idx, val in enumerate(row):
            widths[col_idx] = max(widths[col_idx], len(val))
    return widths


def _format_table_row(vals: List[str], widths: List[int]) -> str:
    """Format table row with proper alignment."""
    try:
        return "  ".join(str(vals[i]).ljust(widths[i]) for i in range(len(vals)))
    except (TypeError, IndexError):
        return "  ".join(str(x) for x in vals)


def format_table(summaries: List[Dict[str, str]], headers: List[str] = HEADERS) -> str:
    """Aligned text table of summary rows."""
    rows = [[summary.get(h, "") for h in headers] for summary in summaries]
    widths = _compute_column_widths(rows, headers)
    lines = [_format_table_row(headers, widths)]
    lines.extend(_format_table_row(row, widths) for row in rows)
    return "\n".join(lines) + "\n"


def print_temperament_table(summaries: List[Dict[str, str]]) -> None:
    """Print summary rows as an aligned table."""
    print(format_table(summaries), end="")


def _handle_openpyxl_error(output_path: str, operation: str = "Excel export") -> None:
    """Handle openpyxl import/availability errors with consistent messaging."""
    print(f"openpyxl not available for {output_path}: {operation} skipped")


def _export_excel_temperaments(xlsx_path: str, summaries: List[Dict[str, str]]) -> None:
    """Write the summaries to a workbook with colored column groups."""
    openpyxl, _ = utils.lazy_import_openpyxl()
    if not openpyxl:
        raise ImportError("openpyxl not available")

    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Temperaments"

    utils.setup_excel_worksheet_formatting(ws, HEADERS)
    fills = utils.get_excel_color_fills()

    for summary in summaries:
        ws.append([summary.get(h, "") for h in HEADERS])
        row_idx = ws.max_row
        for col_idx, fill_key in _COLUMN_FILLS.items():
            fill = fills.get(fill_key)
            if fill:
                ws.cell(row=row_idx, column=col_idx).fill = fill

    for col_idx, width in enumerate(_compute_column_widths(
            [[s.get(h, "") for h in HEADERS] for s in summaries], HEADERS), start=1):
        ws.column_dimensions[get_column_letter(col_idx)].width = min(width + 2, 80)

    wb.save(xlsx_path)
    utils.log_export_success(xlsx_path)


def export_temperament_tables(output_base: str, summaries: List[Dict[str, str]]) -> Tuple[str, str]:
    """Exports the summaries as <base>_temperaments.txt and <base>_temperaments.xlsx."""
    txt_path = f"{output_base}_temperaments.txt"
    xlsx_path = f"{output_base}_temperaments.xlsx"

    utils.safe_file_write(txt_path, format_table(summaries))

    # Export Excel (opzionale)
    try:
        _export_excel_temperaments(xlsx_path, summaries)
    except ImportError:
        _handle_openpyxl_error(xlsx_path)
    except (AttributeError, OSError, PermissionError, KeyError) as e:
        utils.log_export_error(xlsx_path, e)
    return txt_path, xlsx_path
