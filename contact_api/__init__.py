"""
    **Contact Intake API**
        accepts contact form submissions, stores them in an append-only JSON file
        and forwards a best-effort notification email
"""
__version__ = "1.0.0"
