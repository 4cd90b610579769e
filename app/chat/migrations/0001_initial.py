import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("is_group", models.BooleanField(db_index=True, default=False, help_text="Whether this is a group conversation")),
                ("name", models.CharField(blank=True, default="", help_text="Group name (empty for direct conversations)", max_length=100)),
                ("group_image", models.CharField(blank=True, default="", help_text="Group image URL", max_length=500)),
                ("admin", models.ForeignKey(blank=True, help_text="Group admin (null for direct conversations)", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="administered_conversations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-updated_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("content", models.TextField(blank=True, default="")),
                ("image", models.CharField(blank=True, default="", help_text="Image URL from the blob store", max_length=500)),
                ("conversation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="messages", to="chat.conversation")),
                ("sender", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="sent_messages", to=settings.AUTH_USER_MODEL)),
                ("read_by", models.ManyToManyField(blank=True, related_name="read_messages", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [models.Index(fields=["conversation", "created_at", "id"], name="chat_msg_conv_order_idx")],
                "constraints": [models.CheckConstraint(condition=~models.Q(content="") | ~models.Q(image=""), name="message_has_content_or_image")],
            },
        ),
        migrations.AddField(
            model_name="conversation",
            name="latest_message",
            field=models.ForeignKey(blank=True, help_text="Most recent message (recomputed on delete)", null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="+", to="chat.message"),
        ),
        migrations.CreateModel(
            name="Participant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("joined_at", models.DateTimeField(auto_now_add=True)),
                ("conversation", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="participants", to="chat.conversation")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="conversation_participations", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_participant",
                "ordering": ["joined_at", "id"],
                "constraints": [models.UniqueConstraint(fields=("conversation", "user"), name="unique_participation")],
            },
        ),
        migrations.AddField(
            model_name="conversation",
            name="users",
            field=models.ManyToManyField(related_name="conversations", through="chat.Participant", to=settings.AUTH_USER_MODEL),
        ),
        migrations.AddIndex(
            model_name="conversation",
            index=models.Index(fields=["-updated_at"], name="chat_conv_updated_idx"),
        ),
        migrations.CreateModel(
            name="DirectConversationPair",
            fields=[
                ("conversation", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, primary_key=True, related_name="direct_pair", serialize=False, to="chat.conversation")),
                ("user_higher", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to=settings.AUTH_USER_MODEL)),
                ("user_lower", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="+", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_direct_conversation_pair",
                "constraints": [
                    models.UniqueConstraint(fields=("user_lower", "user_higher"), name="unique_direct_conversation_pair"),
                    models.CheckConstraint(condition=models.Q(("user_lower_id__lt", models.F("user_higher_id"))), name="user_lower_less_than_higher"),
                ],
            },
        ),
    ]
