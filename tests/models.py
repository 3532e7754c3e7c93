from django.db import models


class Project(models.Model):
    __test__ = False
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "tests"


class Team(models.Model):
    __test__ = False
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "tests"


class Weapon(models.Model):
    __test__ = False
    name = models.CharField(max_length=100)

    class Meta:
        app_label = "tests"
