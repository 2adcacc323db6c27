from rest_framework import serializers
from .models import Project, Person, TimeEntry, UserProfile
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer


class ProjectSerializer(serializers.ModelSerializer):
    progress = serializers.IntegerField(
        min_value=0,
        max_value=100,
        required=False,
        help_text="Manually entered completion percentage (0-100). Not derived from logged hours."
    )
    fee = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=0,
        help_text="Contracted fee. Denominator of the burn-rate fee usage."
    )
    budget = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    target_hourly_rate = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        required=False,
        allow_null=True,
        help_text="Rate used to turn logged hours into an estimated cost."
    )
    has_time_entries = serializers.SerializerMethodField()

    class Meta:
        model = Project
        fields = '__all__'
        read_only_fields = ('created_by', 'created_at', 'updated_at')

    def get_has_time_entries(self, obj) -> bool:
        ids = self.context.get('projects_with_time_entries')
        if ids is not None:
            return obj.pk in ids
        return obj.time_entries.exists()


class PersonSerializer(serializers.ModelSerializer):
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = Person
        fields = '__all__'
        read_only_fields = ('created_by', 'created_at')


class TimeEntrySerializer(serializers.ModelSerializer):
    hours = serializers.FloatField(
        min_value=0.01,
        max_value=24,
        help_text="Hours worked on the given date."
    )
    project_name = serializers.CharField(source='project.name', read_only=True)

    class Meta:
        model = TimeEntry
        fields = '__all__'
        read_only_fields = ('user', 'created_at')


class UserProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserProfile
        fields = ('full_name', 'role')


class IdentitySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    email = serializers.EmailField(allow_blank=True)
    metadata = UserProfileSerializer()


# --- CUSTOM TOKEN ---

class MyTokenObtainPairSerializer(TokenObtainPairSerializer):
    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        profile = UserProfile.for_user(user)

        token['username'] = user.get_username()
        token['email'] = user.email
        token['full_name'] = profile.full_name
        token['role'] = profile.role

        return token
