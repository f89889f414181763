from django.core.serializers.json import DjangoJSONEncoder
from django.db import migrations, models
import stockdesk.catalog.models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Order',
            fields=[
                ('id', models.CharField(default=stockdesk.catalog.models.new_record_id, editable=False, max_length=32, primary_key=True, serialize=False)),
                ('customer_name', models.CharField(max_length=255)),
                ('date', models.DateTimeField()),
                ('items', models.JSONField(default=list, encoder=DjangoJSONEncoder)),
                ('total_items', models.IntegerField(default=0)),
                ('status', models.CharField(choices=[('completed', 'Completed'), ('pending', 'Pending')], default='completed', max_length=20)),
            ],
            options={
                'db_table': 'orders',
                'ordering': ['-date'],
            },
        ),
    ]
