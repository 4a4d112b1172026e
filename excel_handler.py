import pandas as pd
import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from openpyxl.utils import get_column_letter
import os
import re
import logging
from typing import Optional, Dict, List, Sequence

from models import ClassGroup, ExamDetails, Hall, Student

# Cycled by column index when classes are imported
CLASS_COLORS = [
    'EF4444', '3B82F6', '22C55E',
    'EAB308', 'A855F7', 'EC4899',
    '6366F1', '14B8A6', 'F97316',
]

SUMMARY_LABEL_CELLS = 6


def class_color(index: int) -> str:
    return CLASS_COLORS[index % len(CLASS_COLORS)]


def build_column_blocks(hall: Hall) -> List[Dict]:
    """
    Group a hall's seats by physical column.

    Each block has one sub-column per seat index. The header of a sub-column
    names the classes seen along it ("Empty" if none) and each row lists the
    register number seated at that desk row ("-" if empty).
    """
    blocks = []
    for col in range(1, hall.cols + 1):
        headers = []
        rows = [['-'] * hall.desk_capacity for _ in range(hall.rows)]
        for seat_idx in range(hall.desk_capacity):
            classes_in_line = []
            for row in range(1, hall.rows + 1):
                desk = hall.desk_at(row, col)
                student = desk.students[seat_idx] if desk else None
                if student:
                    rows[row - 1][seat_idx] = student.register_number
                    if student.class_name not in classes_in_line:
                        classes_in_line.append(student.class_name)
            headers.append(' / '.join(classes_in_line) if classes_in_line else 'Empty')
        blocks.append({'column': col, 'headers': headers, 'rows': rows})
    return blocks


class ExcelHandler:
    def __init__(self, export_folder: str = 'exports'):
        self.logger = logging.getLogger(__name__)
        self.export_folder = export_folder

    def read_class_data(self, filepath: str) -> Optional[List[ClassGroup]]:
        """
        Read class lists from the first sheet of an Excel file.
        The first row holds class names, one per column; the cells below
        hold that class's register numbers. Columns may differ in length.
        """
        try:
            df = pd.read_excel(filepath, header=None, dtype=object)
            if df.empty:
                return []

            classes: List[ClassGroup] = []
            students: Dict[str, List[Student]] = {}
            column_owner: Dict[int, str] = {}

            for col_idx, header in enumerate(df.iloc[0].tolist()):
                name = self._cell_text(header)
                if not name:
                    continue
                column_owner[col_idx] = name
                if name in students:
                    self.logger.warning(f"Class {name} appears twice; merging its columns")
                    continue
                students[name] = []
                classes.append(ClassGroup(name=name, color=class_color(col_idx)))

            for _, row in df.iloc[1:].iterrows():
                for col_idx, name in column_owner.items():
                    register_number = self._cell_text(row.iloc[col_idx])
                    if register_number:
                        students[name].append(Student(register_number, name))

            result = [c.with_students(students[c.name]) for c in classes]
            self.logger.info(
                f"Read {len(result)} classes, {sum(len(c.students) for c in result)} students from {filepath}"
            )
            return result

        except Exception as e:
            self.logger.error(f"Error reading Excel file: {str(e)}")
            return None

    def _cell_text(self, value) -> str:
        """Cell value as text; blank and zero cells give an empty string."""
        if value is None:
            return ""
        if isinstance(value, float):
            if pd.isna(value) or value == 0:
                return ""
            if value.is_integer():
                return str(int(value))
        elif isinstance(value, int) and value == 0:
            return ""
        return str(value).strip()

    def export_seating_arrangement(self, halls: Sequence[Hall], details: ExamDetails) -> Optional[str]:
        """
        Export every hall to one workbook, a landscape sheet per hall,
        followed by an occupancy summary sheet.
        """
        if not halls:
            self.logger.warning("No halls to export")
            return None

        try:
            wb = openpyxl.Workbook()
            wb.remove(wb.active)

            used_titles = set()
            for hall in halls:
                ws = wb.create_sheet(self._sheet_title(hall.name, used_titles))
                self._write_hall_sheet(ws, hall, details)

            self._write_summary_sheet(wb.create_sheet("Seating Plan Summary"), halls)

            os.makedirs(self.export_folder, exist_ok=True)
            filename = f"seating_arrangement_{details.display_date}.xlsx"
            filepath = os.path.join(self.export_folder, filename)
            wb.save(filepath)

            self.logger.info(f"Exported seating arrangement to {filepath}")
            return filepath

        except Exception as e:
            self.logger.error(f"Error exporting seating arrangement: {str(e)}")
            return None

    def _sheet_title(self, hall_name: str, used: set) -> str:
        base = re.sub(r'[\[\]:*?/\\]', '', hall_name).strip()[:28] or "Hall"
        title = base
        n = 2
        while title.lower() in used:
            title = f"{base} {n}"
            n += 1
        used.add(title.lower())
        return title

    def _write_hall_sheet(self, ws, hall: Hall, details: ExamDetails) -> None:
        thin = Side(style='thin')
        border = Border(left=thin, right=thin, top=thin, bottom=thin)
        center = Alignment(horizontal='center', vertical='center')
        header_fill = PatternFill(start_color="E0E0E0", end_color="E0E0E0", fill_type="solid")

        ws.page_setup.orientation = ws.ORIENTATION_LANDSCAPE
        ws.oddFooter.right.text = "HoD"
        ws.oddFooter.right.font = "Helvetica,Bold"

        # Each physical column takes desk_capacity cells plus one spacer
        block_width = hall.desk_capacity + 1
        total_width = max(hall.cols * block_width - 1, SUMMARY_LABEL_CELLS + 1)
        last_letter = get_column_letter(total_width)

        title_lines = [
            (details.college_name, Font(bold=True, size=14)),
            (details.department, Font(size=12)),
            ("UNIT TEST SEATING ARRANGEMENT", Font(bold=True, size=12)),
            (f"Room: {hall.name.upper()}        Date: {details.display_date}", Font(bold=True, size=12)),
        ]
        for row_num, (text, font) in enumerate(title_lines, 1):
            ws.merge_cells(f'A{row_num}:{last_letter}{row_num}')
            cell = ws.cell(row=row_num, column=1, value=text)
            cell.font = font
            cell.alignment = center

        header_row = 6
        for block in build_column_blocks(hall):
            first_col = (block['column'] - 1) * block_width + 1
            for offset, header in enumerate(block['headers']):
                cell = ws.cell(row=header_row, column=first_col + offset, value=header)
                cell.font = Font(bold=True, size=8)
                cell.fill = header_fill
                cell.border = border
                cell.alignment = center
            for row_offset, values in enumerate(block['rows'], 1):
                for offset, value in enumerate(values):
                    cell = ws.cell(row=header_row + row_offset, column=first_col + offset, value=value)
                    cell.font = Font(size=8)
                    cell.border = border
                    cell.alignment = center

        summary = hall.summary()
        current_row = header_row + hall.rows + 2
        ws.cell(row=current_row, column=1, value=f"Total Strength: {summary['total_strength']}").font = Font(bold=True)

        current_row += 2
        labels = ["Faculty Name", "Date"] + summary['classes'] + ["Faculty Sign"]
        for label in labels:
            label_cell = ws.cell(row=current_row, column=1, value=label)
            label_cell.font = Font(bold=True)
            label_cell.border = border
            for col in range(2, SUMMARY_LABEL_CELLS + 2):
                ws.cell(row=current_row, column=col).border = border
            current_row += 1

        for col_idx in range(1, total_width + 1):
            ws.column_dimensions[get_column_letter(col_idx)].width = 14

    def _write_summary_sheet(self, ws, halls: Sequence[Hall]) -> None:
        """Overview of capacity and occupancy across halls."""
        ws.merge_cells('A1:H1')
        title_cell = ws.cell(row=1, column=1, value="Exam Seating Plan Summary")
        title_cell.font = Font(size=16, bold=True)
        title_cell.alignment = Alignment(horizontal='center')

        current_row = 3
        headers = ['Hall', 'Layout', 'Capacity', 'Occupied', 'Empty', 'Utilization %', 'Classes', 'Status']
        for col, header in enumerate(headers, 1):
            cell = ws.cell(row=current_row, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="D9EAD3", end_color="D9EAD3", fill_type="solid")
        current_row += 1

        total_capacity = 0
        total_occupied = 0
        for hall in halls:
            summary = hall.summary()
            utilization = summary['utilization']
            total_capacity += summary['total_seats']
            total_occupied += summary['total_strength']

            if utilization >= 90:
                status, status_color = "Full", "FFE6E6"
            elif utilization >= 70:
                status, status_color = "Good", "FFF2CC"
            else:
                status, status_color = "Low", "E6F3FF"

            row_data = [
                hall.name,
                summary['layout'],
                summary['total_seats'],
                summary['total_strength'],
                summary['empty_seats'],
                f"{utilization}%",
                ', '.join(summary['classes']),
                status,
            ]
            for col, value in enumerate(row_data, 1):
                cell = ws.cell(row=current_row, column=col, value=value)
                if col == 8:
                    cell.fill = PatternFill(start_color=status_color, end_color=status_color, fill_type="solid")
            current_row += 1

        current_row += 1
        overall = round(total_occupied / total_capacity * 100, 1) if total_capacity else 0
        ws.cell(row=current_row, column=1, value="TOTALS").font = Font(bold=True)
        ws.cell(row=current_row, column=3, value=total_capacity).font = Font(bold=True)
        ws.cell(row=current_row, column=4, value=total_occupied).font = Font(bold=True)
        ws.cell(row=current_row, column=5, value=total_capacity - total_occupied).font = Font(bold=True)
        ws.cell(row=current_row, column=6, value=f"{overall}%").font = Font(bold=True)

        for col_idx in range(1, 9):
            ws.column_dimensions[get_column_letter(col_idx)].width = 15
