import os

from jinja2 import Environment, FileSystemLoader

from contact_api.models.contact import SubmissionRecord
from contact_api.utils.utils import escape_html

# autoescape stays off, user supplied fields are escaped explicitly with the escape_html filter
env = Environment(loader=FileSystemLoader(os.path.dirname(os.path.abspath(__file__))), autoescape=False)
env.filters['escape_html'] = escape_html
env.filters['nl2br'] = lambda text: text.replace('\n', '<br/>')


class EmailTemplate:
    """
        Used to create notification email bodies based on Jinja2
    """

    def __init__(self, template=None):
        self.template = env.get_template(template)

    def render(self, **kwargs):
        return self.template.render(**kwargs)

    @staticmethod
    def contact_notification_text(record: SubmissionRecord) -> str:
        """plain text rendering, not escaped"""
        return EmailTemplate("contact_notification.txt").render(record=record)

    @staticmethod
    def contact_notification_html(record: SubmissionRecord) -> str:
        return EmailTemplate("contact_notification.html").render(record=record)
