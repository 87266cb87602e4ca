"""
Solicitation generator worker.

    python -m frota.main --once     # single pass (Cloud Run Job / cron)
    python -m frota.main            # loop every GENERATOR_INTERVAL_SECONDS
"""
import os
import sys
import time
import logging

import structlog
from dotenv import load_dotenv

from . import database
from .config import config
from .repositories.unit_of_work import UnitOfWork

# Configuração de Logs
logging.basicConfig(level=logging.INFO)
logger = structlog.get_logger()

# Load env
load_dotenv()


def run_pass():
    """One generation pass in its own session."""
    from .application.solicitacao_generator import SolicitacaoGenerator

    with UnitOfWork(database.get_session()) as uow:
        report = SolicitacaoGenerator(uow).run()
    database.db_session.remove()
    logger.info("generation_pass", **report.to_dict())
    return report


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    run_once = "--once" in argv or os.getenv("CLOUD_RUN_JOB")

    logger.info("📢 Iniciando Worker de Solicitações...")
    if database.init_db() is None:
        logger.error("DATABASE_URL ausente, worker encerrado")
        return 1

    if run_once:
        logger.info("Modo Run-Once (Job/Poll) Ativado.")
        report = run_pass()
        return 1 if report.erros else 0

    logger.info("Modo Loop", interval=config.GENERATOR_INTERVAL_SECONDS)
    while True:
        try:
            run_pass()
            time.sleep(config.GENERATOR_INTERVAL_SECONDS)
        except KeyboardInterrupt:
            break
        except Exception as e:
            logger.error(f"Error loop: {e}")
            time.sleep(config.GENERATOR_INTERVAL_SECONDS)
    return 0


if __name__ == "__main__":
    sys.exit(main())
