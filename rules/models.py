from django.db import models


class TimestampedModel(models.Model):
    """Abstract base with created/updated timestamps for editable tables."""
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class Rule(TimestampedModel):
    """A titled maxim with optional facet tags (area list, discipline, skill)."""
    title = models.CharField(max_length=500)
    description = models.TextField()
    area = models.JSONField(default=list, blank=True)
    discipline = models.CharField(max_length=64, blank=True, default="")
    skill = models.CharField(max_length=64, blank=True, default="")

    class Meta:
        indexes = [
            models.Index(fields=["title"], name="rules_rule_title_idx"),
            models.Index(fields=["created_at"], name="rules_rule_created_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "area": list(self.area or []),
            "discipline": self.discipline or "",
            "skill": self.skill or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ImpressionAction(models.TextChoices):
    VIEWED = "viewed", "Viewed"
    SKIPPED = "skipped", "Skipped"
    REVIEWED = "reviewed", "Reviewed"


class RuleImpression(models.Model):
    """Append-only event: a rule was shown, skipped or reviewed.

    Rows written before rules had stable ids carry only ``rule_title``.
    """
    rule = models.ForeignKey(Rule, null=True, blank=True, on_delete=models.SET_NULL, related_name="impressions")
    rule_title = models.CharField(max_length=500, blank=True, default="")
    action = models.CharField(max_length=16, choices=ImpressionAction.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["rule", "action"], name="rules_impr_rule_action_idx"),
            models.Index(fields=["created_at"], name="rules_impr_created_idx"),
        ]
        ordering = ["-created_at"]

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "rule_title": self.rule_title,
            "action": self.action,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class RuleResponse(models.Model):
    """A structured review: three yes/no answers plus free text."""
    rule = models.ForeignKey(Rule, null=True, blank=True, on_delete=models.SET_NULL, related_name="responses")
    rule_title = models.CharField(max_length=500, blank=True, default="")
    resonates = models.BooleanField()
    applicable = models.BooleanField()
    learned_new = models.BooleanField()
    thoughts = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["created_at"], name="rules_resp_created_idx")]
        ordering = ["-created_at"]

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "rule_title": self.rule_title,
            "resonates": self.resonates,
            "applicable": self.applicable,
            "learned_new": self.learned_new,
            "thoughts": self.thoughts,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Suggestion(models.Model):
    """Visitor-submitted rule candidate awaiting moderation."""
    title = models.CharField(max_length=500)
    description = models.TextField()
    area = models.JSONField(default=list, blank=True)
    discipline = models.CharField(max_length=64)
    skill = models.CharField(max_length=64)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [models.Index(fields=["created_at"], name="rules_sugg_created_idx")]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "area": list(self.area or []),
            "discipline": self.discipline,
            "skill": self.skill,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
