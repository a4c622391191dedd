import logging

claims_logger = logging.getLogger('territory_claims')
claims_logger.setLevel(logging.INFO)

error_logger = logging.getLogger('app_errors')


def configure_loggers(app):
    log_file = app.config.get('CLAIMS_LOG_FILE')
    if log_file and not any(isinstance(h, logging.FileHandler) and h.baseFilename == log_file
                            for h in claims_logger.handlers):
        fh = logging.FileHandler(log_file)
        fh.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        claims_logger.addHandler(fh)
    logging.getLogger('flask_limiter').setLevel(logging.ERROR)
