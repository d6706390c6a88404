import os


class Config:
    LOG_LEVEL = os.environ.get('SKYJO_LOG_LEVEL', 'INFO').upper()
    # Optimistic transaction attempts before a request gives up
    TX_RETRIES = int(os.environ.get('SKYJO_TX_RETRIES', '5'))
    CORS_ORIGINS = [o.strip() for o in os.environ.get('SKYJO_CORS_ORIGINS', '*').split(',') if o.strip()]
    # Optional fixed seed for reproducible shuffles (local play/testing). Empty disables.
    SEED = os.environ.get('SKYJO_SEED', '')
