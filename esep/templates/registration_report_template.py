report_document_template = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{title}</title>
    <style>
      body {{ font-family: Arial, sans-serif; margin: 20px; }}
      h1 {{ color: #333; border-bottom: 2px solid #007bff; padding-bottom: 10px; }}
      .summary {{ margin-bottom: 20px; }}
      .registration {{ border: 1px solid #ddd; margin: 10px 0; padding: 15px; border-radius: 5px; page-break-inside: avoid; }}
      .header {{ font-weight: bold; color: #007bff; }}
      .highlight {{ background: #fff3cd; padding: 2px 8px; border-radius: 4px; font-weight: bold; }}
      @media print {{ body {{ margin: 0; }} }}
    </style>
  </head>
  <body>
    <h1>{title}</h1>
    <p><strong>Generated on:</strong> {generated_on}</p>
    <div class="summary">
{summary}
    </div>
{records}
  </body>
</html>
"""

summary_line_template = """      <p><strong>{label}:</strong> {value}</p>"""

record_block_template = """    <div class="registration">
      <div class="header">{heading}</div>
{fields}
    </div>"""

record_field_template = """      <p><strong>{label}:</strong> {value}</p>"""

highlighted_field_template = """      <p><strong>{label}:</strong> <span class="highlight">{value}</span></p>"""

empty_records_template = """    <p>No registrations to show.</p>"""
