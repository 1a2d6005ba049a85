import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='AIJob',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('job_type', models.CharField(choices=[('SENTIMENT_ANALYSIS', 'Sentiment analysis'), ('QUESTION_GENERATION', 'Question generation')], max_length=50)),
                ('input_ref_type', models.CharField(blank=True, max_length=100)),
                ('input_ref_id', models.UUIDField(blank=True, null=True)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('RUNNING', 'Running'), ('COMPLETED', 'Completed'), ('FAILED', 'Failed')], default='PENDING', max_length=20)),
                ('is_mock', models.BooleanField(default=False)),
                ('error', models.TextField(blank=True)),
                ('result', models.JSONField(blank=True, default=dict)),
                ('model_version', models.CharField(blank=True, max_length=200)),
                ('started_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('triggered_by', models.CharField(choices=[('USER', 'User'), ('RESPONSE', 'New response'), ('SCHEDULE', 'Scheduled re-analysis')], default='USER', max_length=20)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.AddIndex(
            model_name='aijob',
            index=models.Index(fields=['input_ref_type', 'input_ref_id'], name='aijob_input_ref_idx'),
        ),
    ]
