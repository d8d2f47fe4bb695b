"""
main.py: Interface CLI para exportação individual e em lote
"""

import argparse
import logging
import sys
from pathlib import Path

from vtransform.application.services.export_service import ExportService
from vtransform.domain.errors import ExportFailedError
from vtransform.domain.models.jobs import QueueItem
from vtransform.domain.models.settings import settings_from_json
from vtransform.infra.logging import setup_logging
from vtransform.infra.media_io import format_bytes
from vtransform.infra.settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Aplica transformações de vídeo usando FFmpeg."
    )
    parser.add_argument(
        "--settings", help="Arquivo JSON com as configurações (formato de preset)"
    )
    parser.add_argument("--watermark-image", help="Imagem da marca d'água")
    parser.add_argument("--font", help="Fonte (.ttf/.otf) da marca d'água de texto")
    parser.add_argument("--output-dir", help="Diretório de saída")
    parser.add_argument("--config", help="Arquivo config.json")
    parser.add_argument(
        "--log-file", default="vtransform.log", help="Arquivo de log"
    )
    parser.add_argument("--debug", action="store_true", help="Log detalhado")

    subparsers = parser.add_subparsers(dest="command", required=True)

    export = subparsers.add_parser("export", help="Exporta um único vídeo")
    export.add_argument("video", help="Vídeo de entrada")

    batch = subparsers.add_parser("batch", help="Exporta vários vídeos em sequência")
    batch.add_argument("videos", nargs="+", help="Vídeos de entrada")

    return parser


def build_service(args) -> ExportService:
    config = load_settings(Path(args.config) if args.config else None)
    if args.output_dir:
        config.output_dir = args.output_dir

    service = ExportService(config)
    if args.watermark_image:
        service.set_watermark_image(Path(args.watermark_image))
    if args.font:
        service.set_watermark_font(Path(args.font))
    if args.settings:
        text = Path(args.settings).read_text(encoding="utf-8")
        service.set_settings(
            settings_from_json(text, service.watermark_image is not None)
        )
    return service


def print_item(item: QueueItem):
    line = f"[{item.status.value:>10}] {item.source.name} {item.progress * 100:5.1f}%"
    if item.error_message:
        line += f": {item.error_message}"
    print(line, flush=True)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, logging.DEBUG if args.debug else logging.INFO)

    service = build_service(args)
    try:
        if args.command == "export":
            try:
                result = service.export(
                    Path(args.video),
                    on_progress=lambda p: print(f"\r{p * 100:5.1f}%", end="", flush=True),
                )
            except ExportFailedError as e:
                print()
                print(f"❌ {e}", file=sys.stderr)
                if e.log_tail:
                    print("Logs do FFmpeg (fim):", file=sys.stderr)
                    print("\n".join(e.log_tail), file=sys.stderr)
                return 1
            print()
            print(f"✅ {result.output_path} ({format_bytes(result.size)})")
            return 0

        added = service.enqueue([Path(v) for v in args.videos])
        for path in service.queue.skipped:
            print(f"⚠️  Ignorado (ilegível ou maior que o limite): {path}")
        if not added:
            print("Nenhum vídeo na fila")
            return 1

        items = service.run_batch()
        for item in items:
            if item.status.is_terminal:
                print_item(item)
        failed = [item for item in items if item.error_message]
        return 1 if failed else 0
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
