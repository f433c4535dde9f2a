"""
Entry point for python -m translator.

  python -m translator file doc.pdf   -> CLI (translate a document locally)
  python -m translator image scan.png -> CLI (OCR + translate)
  python -m translator audio clip.mp3 -> CLI (transcribe + translate)
  python -m translator                -> ARQ worker (job queue)
"""
import sys

if len(sys.argv) > 1:
    from translator.cli import main
    sys.exit(main())

# Run ARQ worker
from arq import run_worker

from translator.main import WorkerSettings

run_worker(WorkerSettings)
