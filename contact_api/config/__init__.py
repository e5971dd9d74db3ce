from contact_api.config.config import config_instance, Settings
