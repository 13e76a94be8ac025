import logging

from academy.db import Base, SessionLocal, engine
from academy.services.payment_service import get_payment_settings


logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s %(message)s')
logger = logging.getLogger('bootstrap')


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        prices = get_payment_settings(db)
        logger.info(
            'Bootstrap executed: monthly=%s quarterly=%s yearly=%s',
            prices.monthly,
            prices.quarterly,
            prices.yearly,
        )
    finally:
        db.close()


if __name__ == '__main__':
    main()
