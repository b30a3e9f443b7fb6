import pandas as pd

# Common header spellings → canonical Record fields
RENAME_MAP = {
    "notification_date": "date",
    "date_of_notification": "date",
    "health_zone": "zone",
    "zs": "zone",
    "decision": "status",
    "alert_status": "status",
    "source": "origin",
    "alert_origin": "origin",
    "contact": "known_contact",
    "contact_of_case": "known_contact",
    "unexplained_bleeding": "bleeding",
    "abdominal_pains": "abdominal_pain",
    "diarrhea": "diarrhoea",
}


def normalize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize headers to snake_case lowercase and apply RENAME_MAP.
    """
    df = df.copy()
    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"\s+", "_", regex=True)  # spaces → underscore
        .str.replace(":", "", regex=False)  # drop colons
        .str.lower()
    )
    return df.rename(
        columns={
            orig: target
            for orig, target in RENAME_MAP.items()
            if orig in df.columns and target not in df.columns
        }
    )


def load_sheets_as_tables(workbook_path: str) -> dict[str, pd.DataFrame]:
    """
    Read each worksheet into a DataFrame:
      - first row = header
      - first column = index (alert id)
      - headers normalized by normalize_headers
    """
    excel = pd.ExcelFile(workbook_path, engine="openpyxl")
    tables: dict[str, pd.DataFrame] = {}

    for sheet_name in excel.sheet_names:
        df = pd.read_excel(
            excel, sheet_name=sheet_name, header=0, index_col=0, engine="openpyxl"
        )
        tables[sheet_name] = normalize_headers(df)

    return tables


def load_alert_sheet(workbook_path: str, sheet_name: str | None = None) -> tuple[str, pd.DataFrame]:
    """
    Read the alert line list: the named sheet, or the first one.
    Returns (sheet_name, DataFrame).
    """
    excel = pd.ExcelFile(workbook_path, engine="openpyxl")
    if sheet_name is None:
        sheet_name = excel.sheet_names[0]
    elif sheet_name not in excel.sheet_names:
        raise ValueError(f"Sheet {sheet_name!r} not found; available: {excel.sheet_names}")

    df = pd.read_excel(
        excel, sheet_name=sheet_name, header=0, index_col=0, engine="openpyxl"
    )
    return sheet_name, normalize_headers(df)
