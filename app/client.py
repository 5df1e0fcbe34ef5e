# app/client.py
"""
Shell-side half of the questions import: validate a sheet locally, send only
its valid rows to the server and report the rest.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from app.core.import_rows import SheetValidation, validate_sheet
from app.core.settings import settings
from app.core.spreadsheet import read_table

logger = logging.getLogger(__name__)


class ImportClientError(Exception):
    def __init__(self, status_code: int, body: Any):
        super().__init__(f"server returned {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class QuestionsImportClient:
    def __init__(self, http_client: httpx.Client, session_token: str, api_prefix: str = settings.API_PREFIX):
        self.http = http_client
        self.api_prefix = api_prefix.rstrip("/")
        self.headers = {"Authorization": f"Bearer {session_token}"}

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}{path}"

    @staticmethod
    def _body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return response.text

    def validate_file(self, path: Path, property_type_id: Optional[int] = None) -> SheetValidation:
        path = Path(path)
        table = read_table(path.name, path.read_bytes())
        return validate_sheet(table, default_property_type_id=property_type_id)

    def upload(
        self,
        path: Path,
        replace_existing: bool = False,
        dedupe_by_name: bool = False,
        property_type_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Returns {"results": <server results or None>, "invalid": [...], "summary": {...}}.
        Nothing is sent when the sheet has no valid row.
        """
        report = self.validate_file(path, property_type_id)
        out: Dict[str, Any] = {
            "results": None,
            "invalid": [item.to_dict() for item in report.invalid],
            "summary": report.summary(),
        }
        if not report.valid:
            logger.warning("no valid rows in %s", path)
            return out

        payload = {
            "questions": [row.as_payload() for row in report.rows],
            "replaceExisting": replace_existing,
            "dedupeByName": dedupe_by_name,
        }
        response = self.http.post(self._url("/questions/bulk-import"), json=payload, headers=self.headers)
        body = self._body(response)
        if response.status_code >= 400:
            raise ImportClientError(response.status_code, body)
        out["results"] = body.get("results")
        return out

    def download(self, dest: Path, kind: str = "template", property_type_id: Optional[int] = None, fmt: str = "xlsx") -> Path:
        params: Dict[str, Any] = {"type": kind, "format": fmt}
        if property_type_id is not None:
            params["propertyTypeId"] = property_type_id
        response = self.http.get(self._url("/questions/template"), params=params, headers=self.headers)
        if response.status_code >= 400:
            raise ImportClientError(response.status_code, self._body(response))

        dest = Path(dest)
        if dest.is_dir():
            disposition = response.headers.get("content-disposition", "")
            name = disposition.split("filename=")[-1].strip('"') if "filename=" in disposition else f"questions.{fmt}"
            dest = dest / name
        dest.write_bytes(response.content)
        return dest
