import pandas as pd
from typing import List, Optional
from io import BytesIO


class ExportService:
    """Service for exporting report rows."""

    @staticmethod
    def export_to_csv(data: List[dict], columns: Optional[List[str]] = None) -> BytesIO:
        """
        Export data to CSV format.

        Args:
            data: List of dictionaries to export
            columns: Column order; also used as the header when data is empty

        Returns:
            BytesIO object containing CSV data
        """
        df = pd.DataFrame(data, columns=columns)

        buffer = BytesIO()
        df.to_csv(buffer, index=False, encoding='utf-8')
        buffer.seek(0)

        return buffer


# Singleton instance
export_service = ExportService()
