from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('organizations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='EmissionRecord',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tree_path', models.CharField(max_length=500)),
                ('reporting_year', models.PositiveSmallIntegerField()),
                ('reporting_month', models.PositiveSmallIntegerField()),
                ('emission_class', models.CharField(choices=[('SCOPE1', 'Direct emissions'), ('SCOPE2', 'Indirect emissions - energy'), ('SCOPE3', 'Other indirect emissions')], max_length=10)),
                ('category_number', models.PositiveSmallIntegerField()),
                ('category_name', models.CharField(blank=True, max_length=100)),
                ('category_group', models.CharField(blank=True, choices=[('STATIONARY_COMBUSTION', 'Stationary combustion'), ('MOBILE_COMBUSTION', 'Mobile combustion'), ('PROCESS_EMISSIONS', 'Process emissions'), ('REFRIGERANT_LEAKAGE', 'Refrigerant leakage')], help_text='Scope 1 process group, derived from the category number', max_length=30)),
                ('factory_enabled', models.BooleanField(default=False, help_text='Attributable to factory equipment (facility-tagged)')),
                ('total_emission', models.DecimalField(decimal_places=6, max_digits=15)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('headquarters', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='headquarters_emissions', to='organizations.organization')),
                ('partner', models.ForeignKey(blank=True, help_text='Empty for records entered by the headquarters itself', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='partner_emissions', to='organizations.organization')),
            ],
            options={
                'verbose_name': 'Emission Record',
                'verbose_name_plural': 'Emission Records',
                'ordering': ['-reporting_year', '-reporting_month', 'tree_path'],
                'indexes': [
                    models.Index(fields=['headquarters', 'reporting_year', 'reporting_month'], name='emission_hq_period_idx'),
                    models.Index(fields=['partner', 'emission_class', 'reporting_year', 'reporting_month'], name='emission_partner_class_idx'),
                    models.Index(fields=['tree_path'], name='emission_tree_path_idx'),
                    models.Index(fields=['emission_class', 'category_number'], name='emission_class_category_idx'),
                ],
            },
        ),
    ]
