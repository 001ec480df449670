from django.contrib.auth.models import User
from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate_username(self, value):
        value = value.strip()
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("This username is taken.")
        return value

    def validate_email(self, value):
        value = value.strip().lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("This email is already registered.")
        return value

    def validate(self, attrs):
        validate_password(attrs["password"], user=User(username=attrs["username"], email=attrs["email"]))
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(
            username=validated_data["username"],
            email=validated_data["email"],
            password=validated_data["password"],
        )


class SessionSerializer(serializers.Serializer):
    """The registered user plus a JWT pair so the board can be used right away."""

    id = serializers.IntegerField(source="pk")
    username = serializers.CharField()
    access = serializers.SerializerMethodField()
    refresh = serializers.SerializerMethodField()

    def _token(self, user):
        if "token" not in self.context:
            self.context["token"] = RefreshToken.for_user(user)
        return self.context["token"]

    def get_access(self, user):
        return str(self._token(user).access_token)

    def get_refresh(self, user):
        return str(self._token(user))
