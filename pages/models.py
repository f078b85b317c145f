from django.db import models


class PageContent(models.Model):
    """One editable text section of a static site page (about, contact, ...)."""
    page_name = models.CharField(max_length=100)
    section_key = models.CharField(max_length=100)
    content = models.TextField(blank=True, default='')
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['page_name', 'section_key'], name='pages_content_page_section_uniq'),
        ]
        indexes = [models.Index(fields=['page_name'], name='pages_content_page_idx')]
        ordering = ['page_name', 'section_key']

    def __str__(self) -> str:
        return f"{self.page_name}/{self.section_key}"

    def to_row(self) -> dict:
        return {
            'id': self.id,
            'page_name': self.page_name,
            'section_key': self.section_key,
            'content': self.content,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
