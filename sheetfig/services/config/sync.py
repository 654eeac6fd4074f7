"""
Sheet Sync

Fetches key/value rows from a publicly shared spreadsheet.

The sheet is read through its "gviz" CSV export:
    <sheet base url>/gviz/tq?tqx=out:csv&sheet=<sheet name>

The first CSV row is the header and must contain the key and value
columns. Spreadsheets that mix types in one column come back with the
minority-type cells blanked out; a blank key cell is reported as a
MissingFieldError so the loader can explain the problem.
"""

import csv
import io

import httpx

from sheetfig.common.exceptions import (
    MissingFieldError,
    SheetDecodeError,
    SourceUnreachableError,
)
from sheetfig.common.logging_setup import get_service_logger

logger = get_service_logger("config.sync")

SHARING_SUFFIX = "edit?usp=sharing"


def normalize_sheet_url(url: str) -> str:
    """Strip the trailing 'edit?usp=sharing' of a copied share link"""
    if url.endswith(SHARING_SUFFIX):
        return url[: -len(SHARING_SUFFIX)]
    return url


class SheetSync:
    """
    Reads configuration rows from a shared sheet.

    Rows come back in sheet order as (key, value) pairs; empty value
    cells are None.
    """

    def __init__(
        self,
        sheet_name: str = "Sheet1",
        key_column: str = "key",
        value_column: str = "value",
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.sheet_name = sheet_name
        self.key_column = key_column
        self.value_column = value_column
        self.timeout_s = timeout_s
        # Injected transport (e.g. httpx.MockTransport) replaces the network
        self._transport = transport

    def export_url(self, url: str) -> str:
        """CSV export endpoint for a sheet URL"""
        base = normalize_sheet_url(url).rstrip("/")
        return f"{base}/gviz/tq"

    async def fetch_rows(self, url: str) -> list[tuple[str, str | None]]:
        """
        Fetch all key/value rows of the sheet.

        Args:
            url: Sheet URL (share link or base URL)

        Returns:
            Ordered list of (key, value) pairs

        Raises:
            SourceUnreachableError: transport error or non-2xx response
            SheetDecodeError: response is not a key/value CSV
        """
        endpoint = self.export_url(url)

        # New client per fetch: background refreshes may run on another loop
        async with httpx.AsyncClient(
            timeout=self.timeout_s,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                response = await client.get(
                    endpoint,
                    params={"tqx": "out:csv", "sheet": self.sheet_name},
                )
            except httpx.TimeoutException as e:
                raise SourceUnreachableError(f"Request timeout: {e}", source=url) from e
            except httpx.HTTPError as e:
                raise SourceUnreachableError(f"Connection failed: {e}", source=url) from e

        if not response.is_success:
            raise SourceUnreachableError(
                f"HTTP {response.status_code} from {endpoint}",
                source=url,
                status_code=response.status_code,
            )

        rows = self.parse_csv(response.text, source=url)
        logger.debug(
            f"Fetched {len(rows)} rows from sheet '{self.sheet_name}'",
            extra={"url": url, "row_count": len(rows)},
        )
        return rows

    def parse_csv(self, text: str, source: str | None = None) -> list[tuple[str, str | None]]:
        """Parse the CSV export body into (key, value) rows"""
        reader = csv.reader(io.StringIO(text))

        header = next(reader, None)
        if not header:
            raise SheetDecodeError("Empty response: missing header row", source)

        columns = [name.strip() for name in header]
        try:
            key_index = columns.index(self.key_column)
            value_index = columns.index(self.value_column)
        except ValueError as e:
            raise SheetDecodeError(
                f"Sheet must have '{self.key_column}' and '{self.value_column}' "
                f"columns, got {columns}",
                source,
            ) from e

        rows: list[tuple[str, str | None]] = []
        for index, row in enumerate(reader):
            if not any(cell.strip() for cell in row):
                continue

            key = row[key_index].strip() if key_index < len(row) else ""
            if not key:
                raise MissingFieldError("key", index, source)

            value = row[value_index] if value_index < len(row) else ""
            rows.append((key, value if value != "" else None))

        return rows
