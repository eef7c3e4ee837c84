from src.export.exporter import export_markdown, export_photos_zip, safe_file_stem

__all__ = ["export_markdown", "export_photos_zip", "safe_file_stem"]
