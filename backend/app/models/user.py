"""
用户数据模型
---------------------------------
功能：
- 定义 User 记录结构（users 集合中的一项）
- 字段包括：id、姓名、邮箱、手机号、密码哈希、免费次数、积分、创建时间
- 持久化字段名使用 camelCase（freeTrials、passwordHash ...）

使用：
- User.model_validate(record) 从集合读取
- user.to_record() 写回集合
- 邮箱、手机号均唯一
"""

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """用户记录"""
    id: str
    name: str
    email: str
    phone: str
    password_hash: str = Field(..., alias="passwordHash")
    free_trials: int = Field(0, ge=0, alias="freeTrials", description="剩余免费次数")
    points: int = Field(0, ge=0, description="积分余额")
    created_at: str = Field(..., alias="createdAt")
    verified: bool = True

    model_config = ConfigDict(populate_by_name=True)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, trials={self.free_trials}, points={self.points})>"

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)

    def profile(self) -> dict:
        """对外展示的用户信息（不含密码哈希）"""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "freeTrials": self.free_trials,
            "points": self.points,
        }
