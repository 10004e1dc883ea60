"""
Google Sheets access for the leads spreadsheet.
Requires: LEADS_SHEET_ID and one of GOOGLE_SHEETS_CRED (path) / GOOGLE_SHEETS_CRED_JSON (inline).
Optional: LEADS_WORKSHEET (defaults to the first tab).
"""
import json
import os

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

# Column contract with whoever reads the sheet. Do not reorder.
LEAD_COLUMNS = [
    "Name",
    "Email",
    "Phone",
    "Country",
    "Signup Date",
    "Meeting Schedule",
    "Source",
    "API Data",
]


def _credentials():
    from google.oauth2.service_account import Credentials

    inline = (os.environ.get("GOOGLE_SHEETS_CRED_JSON") or "").strip()
    if inline:
        return Credentials.from_service_account_info(json.loads(inline), scopes=SCOPES)
    cred_path = (os.environ.get("GOOGLE_SHEETS_CRED") or "").strip()
    if cred_path:
        return Credentials.from_service_account_file(cred_path, scopes=SCOPES)
    return None


def get_worksheet():
    """Open the leads worksheet, or None if the server isn't configured."""
    sheet_id = (os.environ.get("LEADS_SHEET_ID") or "").strip()
    if not sheet_id:
        return None
    creds = _credentials()
    if creds is None:
        return None
    import gspread

    ss = gspread.authorize(creds).open_by_key(sheet_id)
    tab = (os.environ.get("LEADS_WORKSHEET") or "").strip()
    return ss.worksheet(tab) if tab else ss.sheet1


def append_lead_row(ws, row: list) -> None:
    if len(row) != len(LEAD_COLUMNS):
        raise ValueError(f"Lead row must have {len(LEAD_COLUMNS)} columns, got {len(row)}")
    ws.append_row(row, value_input_option="USER_ENTERED")
