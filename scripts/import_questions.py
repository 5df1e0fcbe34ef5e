# scripts/import_questions.py
import argparse
import json
import logging
import sys
from pathlib import Path

import httpx

from app.client import ImportClientError, QuestionsImportClient
from app.core.errors import ImportFileError
from app.core.logging import setup_logging
from app.core.settings import settings


def main():
    p = argparse.ArgumentParser(description="Validate, upload or download questions spreadsheets")
    p.add_argument("--base-url", default="http://127.0.0.1:8000")
    p.add_argument("--token", default="", help="session token (Bearer)")
    sub = p.add_subparsers(dest="mode", required=True)

    v = sub.add_parser("validate", help="check a sheet locally, nothing is sent")
    v.add_argument("file", type=Path)
    v.add_argument("--property-type-id", type=int)

    u = sub.add_parser("upload", help="validate locally, then import the valid rows")
    u.add_argument("file", type=Path)
    u.add_argument("--replace-existing", action="store_true")
    u.add_argument("--dedupe-by-name", action="store_true")
    u.add_argument("--property-type-id", type=int)

    d = sub.add_parser("download", help="fetch the template or a full export")
    d.add_argument("dest", type=Path)
    d.add_argument("--type", dest="kind", choices=["template", "export"], default="template")
    d.add_argument("--property-type-id", type=int)
    d.add_argument("--format", dest="fmt", choices=["xlsx", "csv"], default="xlsx")

    args = p.parse_args()
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    with httpx.Client(base_url=args.base_url, timeout=60) as http:
        client = QuestionsImportClient(http, args.token)
        try:
            if args.mode == "validate":
                out = client.validate_file(args.file, args.property_type_id).to_dict()
            elif args.mode == "upload":
                out = client.upload(
                    args.file,
                    replace_existing=args.replace_existing,
                    dedupe_by_name=args.dedupe_by_name,
                    property_type_id=args.property_type_id,
                )
            else:
                out = {"saved": str(client.download(args.dest, args.kind, args.property_type_id, args.fmt))}
        except (ImportFileError, ImportClientError) as exc:
            logging.getLogger("import_questions").error("%s", exc)
            sys.exit(1)

    print(json.dumps(out, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
