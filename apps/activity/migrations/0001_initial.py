from django.db import migrations, models
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='ActivityEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('org_id', models.UUIDField(db_index=True)),
                ('type', models.CharField(choices=[('SURVEY_CREATED', 'Survey Created'), ('RESPONSE_RECEIVED', 'Response Received'), ('SURVEY_UPDATED', 'Survey Updated'), ('SURVEY_DELETED', 'Survey Deleted'), ('SUMMARY_GENERATED', 'AI Summary Generated'), ('SURVEY_EDITED', 'Survey Edited')], db_index=True, max_length=64)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now, editable=False)),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [models.Index(fields=['org_id', '-created_at'], name='activity_org_created_idx')],
            },
        ),
    ]
