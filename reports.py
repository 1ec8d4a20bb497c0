import csv
import io

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle

import inventory

REPORT_TABLES = ('inventory', 'projects', 'expenses', 'sales')


def build_report_rows(table):
    """Return the header and body rows for a module report, plus a totals row or None."""
    if table == 'inventory':
        header = ['ID', 'Name', 'Quantity', 'Cost', 'Value']
        rows = []
        total_quantity = total_value = 0
        for item in inventory.load_materials():
            value = item.quantity * item.cost
            rows.append([item.id, item.name, item.quantity, f"{item.cost:.2f}", f"{value:.2f}"])
            total_quantity += item.quantity
            total_value += value
        totals = ['TOTAL', '', total_quantity, '', f"{total_value:.2f}"]
    elif table == 'projects':
        header = ['ID', 'Name', 'Materials', 'Cost']
        rows = [[project.id, project.name, len(project.materials),
                 f"{inventory.project_cost(project):.2f}"]
                for project in inventory.load_projects()]
        totals = None
    elif table == 'expenses':
        header = ['ID', 'Description', 'Amount']
        rows = [[expense.id, expense.description, f"{expense.amount:.2f}"]
                for expense in inventory.load_expenses()]
        totals = ['TOTAL', '', f"{inventory.total_expenses():.2f}"]
    elif table == 'sales':
        header = ['ID', 'Item', 'Quantity', 'Price', 'Total']
        rows = []
        total_quantity = 0
        for sale in inventory.load_sales():
            rows.append([sale.id, sale.item, sale.quantity, f"{sale.price:.2f}", f"{sale.total:.2f}"])
            total_quantity += sale.quantity
        totals = ['TOTAL', '', total_quantity, '', f"{inventory.total_sales():.2f}"]
    else:
        raise inventory.ValidationError(f"No report for table: {table}")
    return header, rows, totals


def generate_csv_report(table):
    header, rows, totals = build_report_rows(table)
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    writer.writerows(rows)
    if totals:
        writer.writerow(totals)
    return io.BytesIO(output.getvalue().encode('utf-8'))


def generate_pdf_report(table):
    header, rows, totals = build_report_rows(table)
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=letter)

    data = [header] + rows
    if totals:
        data.append(totals)

    report = Table(data)
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 14),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
        ('TEXTCOLOR', (0, 1), (-1, -1), colors.black),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 1), (-1, -1), 12),
        ('TOPPADDING', (0, 1), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 1), (-1, -1), 6),
        ('GRID', (0, 0), (-1, -1), 1, colors.black),
    ]
    if totals:
        style.append(('BACKGROUND', (0, -1), (-1, -1), colors.lightgreen))
    report.setStyle(TableStyle(style))

    doc.build([report])
    buffer.seek(0)
    return buffer
