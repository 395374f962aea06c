"""Invoice ("nota fiscal de serviço") generation.

`build` turns a `ServiceRecord` into invoice data; `pdf` lays that data out
as an A4 PDF with reportlab.
"""
