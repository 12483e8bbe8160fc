# Quotations
from app.models.quotations.quotation_models import Quotation
