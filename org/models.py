from django.db import models


class CompanySetting(models.Model):
    """Company details printed at the top of ledger and book documents."""
    name = models.CharField(max_length=200)
    address = models.TextField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")

    def __str__(self):
        return self.name

    def as_header(self):
        return {
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
        }
