"""
D8 Downloads

Download gateway serving purchased poster PDFs by cart item id.
"""
