from pms_core.core.config import settings
from pms_core.core.logging import setup_logging
from pms_core.database import SessionLocal, init_db
from pms_core.models.setting import GlobalSetting
from pms_core.services.settings_lookup import PMS360_SLA_KEY, REQUEST_SLA_KEY


def seed_sla_settings(db):
    """Insert the SLA keys with the configured defaults; existing values are left alone."""
    created = []
    defaults = {
        REQUEST_SLA_KEY: settings.sla.request_sla_hours,
        PMS360_SLA_KEY: settings.sla.pms360_sla_hours,
    }
    for key, value in defaults.items():
        if db.query(GlobalSetting).filter(GlobalSetting.key == key).first() is None:
            db.add(GlobalSetting(key=key, value=str(value)))
            created.append(key)
    db.commit()
    return created


def seed():
    setup_logging(settings.log_level)
    init_db()
    db = SessionLocal()
    try:
        created = seed_sla_settings(db)
        if created:
            print(f"Created settings: {', '.join(created)}")
        else:
            print("SLA settings already present.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
