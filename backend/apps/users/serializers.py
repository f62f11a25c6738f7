from rest_framework import serializers


class CredentialsSerializer(serializers.Serializer):
    """Body of login and register requests."""
    email = serializers.EmailField(error_messages={'invalid': 'Please provide a valid email'})
    password = serializers.CharField(
        trim_whitespace=False,
        max_length=128,
        error_messages={'blank': 'Password is required', 'required': 'Password is required'},
    )
